"""Launch the formula plotter window."""

from formula_plotter.app import main

if __name__ == "__main__":
    main()
