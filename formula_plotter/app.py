"""Interactive formula plotter window.

The plot widget works directly in screen pixels: the view box range equals
the viewport size and y is inverted, so sampled points from the core are
drawn as-is.  Panning and zooming only move the :class:`GridFrame`; curves
are re-sampled for every new frame.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import sys
from typing import Any, Optional

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import QEvent, QPointF, Qt, QTimer
from PySide6.QtGui import QCursor, QKeyEvent, QMouseEvent, QWheelEvent
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QDoubleSpinBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from .config import (
    FULL_PASS_DEBOUNCE_MS,
    MAX_SAMPLES,
    MIN_SAMPLES,
    NAVIGATION_STEP,
    NAVIGATION_STEP_FAST,
    WHEEL_ZOOM_STEP,
)
from .coordinates import CanvasRegion, centered_frame, grid_line_positions, pan, to_math, to_screen, zoom_about
from .discontinuity import DiscontinuityClassifier
from .evaluator import detect_parameters, validate_expression
from .latex import LaTeXFormatter, format_for_display
from .locator import format_number, locate, navigate, readout
from .models import (
    CanvasSize,
    Formula,
    FormulaType,
    GridFrame,
    PathSegment,
    Point,
    SampledPoint,
    create_default_formula,
    formula_examples,
    formula_from_example,
)
from .path_builder import PathBuilder
from .sampler import AdaptiveSampler
from .scheduler import PassTicket, PassTracker, SamplingKey

log = logging.getLogger(__name__)


def _segment_arrays(segments: list[PathSegment]) -> tuple[np.ndarray, np.ndarray]:
    """Concatenate segments with NaN separators for ``connect="finite"``."""
    xs: list[float] = []
    ys: list[float] = []
    for seg in segments:
        if xs:
            xs.append(float("nan"))
            ys.append(float("nan"))
        xs.extend(p.x for p in seg.points)
        ys.extend(p.y for p in seg.points)
    return np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64)


class PlotterWindow(QMainWindow):

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Formula Plotter")
        self.setGeometry(100, 100, 1400, 860)

        self._sampler = AdaptiveSampler()
        self._tracker = PassTracker()
        self._latex = LaTeXFormatter()

        self._formulas: list[Formula] = []
        self._points: dict[str, list[SampledPoint]] = {}
        self._curves: dict[str, Any] = {}
        self._pending: list[PassTicket] = []

        self._canvas = CanvasSize()
        self._frame: Optional[GridFrame] = None
        self._dragging = False
        self._pan_start_pos: Optional[QPointF] = None
        self._pan_start_frame: Optional[GridFrame] = None

        # (formula id, point index, math x) of the selected point
        self._selection: Optional[tuple[str, int, float]] = None

        self._full_pass_timer = QTimer(self)
        self._full_pass_timer.setSingleShot(True)
        self._full_pass_timer.setInterval(FULL_PASS_DEBOUNCE_MS)
        self._full_pass_timer.timeout.connect(self._run_pending_passes)

        self._build_ui()
        self._configure_plot()

    # ------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        root = QHBoxLayout(central)

        left = QVBoxLayout()
        self._plot_widget = pg.PlotWidget()
        left.addWidget(self._plot_widget)

        info_row = QHBoxLayout()
        self._readout_lbl = QLabel("Click a curve to inspect a point")
        self._zoom_lbl = QLabel("Zoom 100%")
        self._status_lbl = QLabel("Ready")
        self._status_lbl.setStyleSheet("color: gray; font-style: italic;")
        for widget in (self._readout_lbl, self._zoom_lbl, self._status_lbl):
            info_row.addWidget(widget)
        left.addLayout(info_row)
        root.addLayout(left, 3)

        right = QVBoxLayout()

        # ── formula list ───────────────────────────────────────────────
        self._formula_list = QListWidget()
        self._formula_list.currentRowChanged.connect(self._on_formula_selected)
        right.addWidget(QLabel("Formulas:"))
        right.addWidget(self._formula_list)

        btn_row = QHBoxLayout()
        self._type_combo = QComboBox()
        for kind in FormulaType:
            self._type_combo.addItem(kind.value.capitalize(), kind)
        self._add_btn = QPushButton("Add")
        self._remove_btn = QPushButton("Remove")
        self._add_btn.clicked.connect(self.add_formula)
        self._remove_btn.clicked.connect(self.remove_formula)
        for widget in (self._type_combo, self._add_btn, self._remove_btn):
            btn_row.addWidget(widget)
        right.addLayout(btn_row)

        example_row = QHBoxLayout()
        self._example_combo = QComboBox()
        for example in formula_examples():
            self._example_combo.addItem(example.name, example)
        self._example_btn = QPushButton("Add example")
        self._example_btn.clicked.connect(self.add_example)
        example_row.addWidget(self._example_combo, 1)
        example_row.addWidget(self._example_btn)
        right.addLayout(example_row)

        # ── editor ─────────────────────────────────────────────────────
        editor = QGroupBox("Formula")
        form = QFormLayout(editor)
        self._expr_edit = QLineEdit()
        self._expr_edit.editingFinished.connect(self._on_expression_edited)
        self._error_lbl = QLabel("")
        self._error_lbl.setStyleSheet("color: rgb(200,60,60);")
        self._error_lbl.setWordWrap(True)
        self._samples_spin = QSpinBox()
        self._samples_spin.setRange(MIN_SAMPLES, MAX_SAMPLES)
        self._samples_spin.setSingleStep(100)
        self._samples_spin.valueChanged.connect(self._on_samples_changed)
        self._scale_spin = QDoubleSpinBox()
        self._scale_spin.setRange(0.01, 100.0)
        self._scale_spin.setSingleStep(0.1)
        self._scale_spin.valueChanged.connect(self._on_scale_changed)
        form.addRow("Expression", self._expr_edit)
        form.addRow("", self._error_lbl)
        form.addRow("Samples", self._samples_spin)
        form.addRow("Scale", self._scale_spin)
        right.addWidget(editor)

        self._params_group = QGroupBox("Parameters")
        self._params_layout = QFormLayout(self._params_group)
        right.addWidget(self._params_group)

        # ── LaTeX output ───────────────────────────────────────────────
        right.addWidget(QLabel("LaTeX:"))
        self._latex_output = QTextEdit()
        self._latex_output.setReadOnly(True)
        self._latex_output.setFontFamily("Courier New")
        self._latex_output.setMaximumHeight(120)
        right.addWidget(self._latex_output)
        self._copy_btn = QPushButton("Copy LaTeX")
        self._copy_btn.clicked.connect(self.copy_latex)
        right.addWidget(self._copy_btn)
        right.addStretch(1)
        root.addLayout(right, 1)

        vb = self._plot_widget.plotItem.vb
        vb.setMenuEnabled(False)
        vb.setMouseEnabled(x=False, y=False)
        vb.sigResized.connect(self._on_view_resized)
        self._plot_widget.viewport().installEventFilter(self)
        self._plot_widget.installEventFilter(self)
        self._plot_widget.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    def _configure_plot(self) -> None:
        item = self._plot_widget.plotItem
        item.hideAxis("left")
        item.hideAxis("bottom")
        item.hideButtons()
        vb = item.vb
        vb.disableAutoRange()
        vb.invertY(True)
        self._plot_widget.setBackground("w")

        self._grid_item = pg.PlotDataItem(pen=pg.mkPen((225, 225, 225), width=1))
        self._axis_item = pg.PlotDataItem(pen=pg.mkPen((120, 120, 120), width=1.5))
        self._marker = pg.ScatterPlotItem(size=10, brush=pg.mkBrush(230, 60, 60), pen=None)
        for graphics in (self._grid_item, self._axis_item, self._marker):
            self._plot_widget.addItem(graphics)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _view_point(self, pos: QPointF) -> Point:
        vp = self._plot_widget.plotItem.vb.mapSceneToView(pos)
        return Point(float(vp.x()), float(vp.y()))

    def eventFilter(self, obj: Any, event: QEvent) -> bool:  # noqa: N802
        if obj is self._plot_widget and event.type() == QEvent.Type.KeyPress:
            if isinstance(event, QKeyEvent) and self._handle_key(event):
                return True
            return super().eventFilter(obj, event)

        if obj is not self._plot_widget.viewport() or self._frame is None:
            return super().eventFilter(obj, event)

        et = event.type()
        if et == QEvent.Type.Wheel and isinstance(event, QWheelEvent):
            delta = event.angleDelta().y()
            if delta == 0:
                return True
            zoom = self._frame.zoom + math.copysign(WHEEL_ZOOM_STEP, delta)
            self._frame = zoom_about(self._frame, self._view_point(event.position()), zoom)
            self._zoom_lbl.setText(f"Zoom {self._frame.zoom * 100:.0f}%")
            self.refresh()
            return True

        if not isinstance(event, QMouseEvent):
            return super().eventFilter(obj, event)

        if et == QEvent.Type.MouseButtonPress:
            if event.button() == Qt.MouseButton.LeftButton and not self._dragging:
                self._select_at(self._view_point(event.position()))
                self._plot_widget.setFocus()
                return True
            if event.button() == Qt.MouseButton.RightButton:
                self._dragging = True
                self._pan_start_pos = QPointF(event.position())
                self._pan_start_frame = self._frame
                self._plot_widget.viewport().setCursor(QCursor(Qt.CursorShape.ClosedHandCursor))
                return True

        if et == QEvent.Type.MouseMove and self._dragging:
            if self._pan_start_pos is not None and self._pan_start_frame is not None:
                start = self._view_point(self._pan_start_pos)
                now = self._view_point(event.position())
                self._frame = pan(self._pan_start_frame, now.x - start.x, now.y - start.y)
                self.refresh(dragging=True)
                self._schedule_full_pass()
            return True

        if et == QEvent.Type.MouseButtonRelease and event.button() == Qt.MouseButton.RightButton:
            self._dragging = False
            self._pan_start_pos = None
            self._pan_start_frame = None
            self._plot_widget.viewport().unsetCursor()
            self._schedule_full_pass()
            return True

        return super().eventFilter(obj, event)

    def _handle_key(self, event: QKeyEvent) -> bool:
        key = event.key()
        if key not in (Qt.Key.Key_Left, Qt.Key.Key_Right) or self._selection is None:
            return False
        fast = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)
        step = NAVIGATION_STEP_FAST if fast else NAVIGATION_STEP
        direction = 1 if key == Qt.Key.Key_Right else -1
        formula_id, index, _ = self._selection
        points = self._points.get(formula_id, [])
        if not points or self._frame is None:
            return False
        new_index = navigate(points, index, direction, self._frame, step)
        self._set_selection(formula_id, new_index)
        return True

    def _on_view_resized(self) -> None:
        rect = self._plot_widget.plotItem.vb.boundingRect()
        canvas = CanvasSize(float(rect.width()), float(rect.height()))
        if canvas.is_degenerate:
            return
        self._canvas = canvas
        self._plot_widget.plotItem.vb.setRange(
            xRange=(0.0, canvas.width), yRange=(0.0, canvas.height), padding=0
        )
        if self._frame is None:
            self._frame = centered_frame(canvas)
        self.refresh()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def refresh(self, dragging: bool = False) -> None:
        if self._frame is None:
            return
        self._draw_grid()
        for formula in self._formulas:
            points = self._sampler.sample(formula, self._frame, self._canvas, dragging=dragging)
            self._apply_points(formula, self._frame, points)
        self._restore_selection()

    def _schedule_full_pass(self) -> None:
        if self._frame is None:
            return
        self._pending = [
            self._tracker.schedule(SamplingKey.for_pass(f, self._frame, self._canvas))
            for f in self._formulas
        ]
        self._full_pass_timer.start()

    def _run_pending_passes(self) -> None:
        if self._dragging:
            self._full_pass_timer.start()
            return
        pending, self._pending = self._pending, []
        by_id = {f.id: f for f in self._formulas}
        for ticket in pending:
            formula = by_id.get(ticket.key.formula_id)
            if formula is None or self._frame is None:
                continue
            current = SamplingKey.for_pass(formula, self._frame, self._canvas)
            # sampling a stale key would overwrite the sampler's cached full pass
            if not self._tracker.is_current(ticket, current):
                log.debug("skipping stale pass %d for %s", ticket.generation, formula.id)
                continue
            points = self._sampler.sample(formula, ticket.key.frame, ticket.key.canvas)
            if self._tracker.accept(ticket, current):
                self._apply_points(formula, ticket.key.frame, points)
        self._restore_selection()

    def _apply_points(self, formula: Formula, frame: GridFrame, points: list[SampledPoint]) -> None:
        self._points[formula.id] = points
        if formula.type is FormulaType.FUNCTION:
            builder = PathBuilder(DiscontinuityClassifier(formula.expression, frame, self._canvas))
        else:
            builder = PathBuilder(region=CanvasRegion.around(
                self._canvas, x_margin=self._canvas.width, y_margin=self._canvas.height
            ))
        xs, ys = _segment_arrays(builder.build(points))

        curve = self._curves.get(formula.id)
        if curve is None:
            curve = self._plot_widget.plot(
                xs, ys, pen=pg.mkPen(formula.color, width=formula.stroke_width), connect="finite"
            )
            self._curves[formula.id] = curve
        else:
            curve.setPen(pg.mkPen(formula.color, width=formula.stroke_width))
            curve.setData(xs, ys, connect="finite")

    def _draw_grid(self) -> None:
        assert self._frame is not None
        w, h = self._canvas.width, self._canvas.height
        gx, gy = grid_line_positions(self._frame, self._canvas)
        xs = np.concatenate((np.repeat(gx, 2), np.tile([0.0, w], gy.size)))
        ys = np.concatenate((np.tile([0.0, h], gx.size), np.repeat(gy, 2)))
        self._grid_item.setData(xs, ys, connect="pairs")

        ox, oy = self._frame.origin.x, self._frame.origin.y
        self._axis_item.setData([ox, ox, 0.0, w], [0.0, h, oy, oy], connect="pairs")

    # ------------------------------------------------------------------
    # Point selection
    # ------------------------------------------------------------------

    def _select_at(self, where: Point) -> None:
        best: Optional[tuple[float, str, int]] = None
        for formula in self._formulas:
            hit = locate(where, self._points.get(formula.id, []))
            if hit is None:
                continue
            d = math.hypot(hit.point.x - where.x, hit.point.y - where.y)
            if best is None or d < best[0]:
                best = (d, formula.id, hit.index)
        if best is None:
            self._clear_selection()
            return
        self._set_selection(best[1], best[2])

    def _set_selection(self, formula_id: str, index: int) -> None:
        assert self._frame is not None
        point = self._points[formula_id][index]
        mx, my = readout(point, self._frame)
        self._selection = (formula_id, index, mx)
        self._marker.setData([point.x], [point.y])
        self._readout_lbl.setText(f"x = {format_number(mx)}, y = {format_number(my)}")

    def _clear_selection(self) -> None:
        self._selection = None
        self._marker.setData([], [])
        self._readout_lbl.setText("Click a curve to inspect a point")

    def _restore_selection(self) -> None:
        """Re-attach the selection to the point nearest its math x."""
        if self._selection is None or self._frame is None:
            return
        formula_id, _, mx = self._selection
        points = self._points.get(formula_id, [])
        target = to_screen(Point(mx, 0.0), self._frame).x
        candidates = [i for i, p in enumerate(points) if p.is_valid]
        if not candidates:
            self._clear_selection()
            return
        index = min(candidates, key=lambda i: abs(points[i].x - target))
        point = points[index]
        self._selection = (formula_id, index, to_math(Point(point.x, point.y), self._frame).x)
        self._marker.setData([point.x], [point.y])

    # ------------------------------------------------------------------
    # Formula editing
    # ------------------------------------------------------------------

    def _current_index(self) -> int:
        return self._formula_list.currentRow()

    def _current_formula(self) -> Optional[Formula]:
        i = self._current_index()
        return self._formulas[i] if 0 <= i < len(self._formulas) else None

    def _replace_current(self, **changes: Any) -> None:
        i = self._current_index()
        if not 0 <= i < len(self._formulas):
            return
        formula = dataclasses.replace(self._formulas[i], **changes)
        self._formulas[i] = formula
        item = self._formula_list.item(i)
        if item is not None:
            item.setText(formula.name or format_for_display(formula.expression))
        self._refresh_latex()
        self.refresh()

    def _add(self, formula: Formula) -> None:
        self._formulas.append(formula)
        self._formula_list.addItem(formula.name or format_for_display(formula.expression))
        self._formula_list.setCurrentRow(len(self._formulas) - 1)
        self.refresh()

    def add_formula(self) -> None:
        self._add(create_default_formula(self._type_combo.currentData()))

    def add_example(self) -> None:
        example = self._example_combo.currentData()
        if example is not None:
            self._add(formula_from_example(example))

    def remove_formula(self) -> None:
        i = self._current_index()
        if not 0 <= i < len(self._formulas):
            return
        formula = self._formulas.pop(i)
        curve = self._curves.pop(formula.id, None)
        if curve is not None:
            self._plot_widget.removeItem(curve)
        self._points.pop(formula.id, None)
        self._sampler.forget(formula.id)
        self._tracker.cancel(formula.id)
        if self._selection is not None and self._selection[0] == formula.id:
            self._clear_selection()
        self._formula_list.takeItem(i)

    def _on_formula_selected(self, row: int) -> None:
        formula = self._current_formula()
        if formula is None:
            return
        for widget in (self._expr_edit, self._samples_spin, self._scale_spin):
            widget.blockSignals(True)
        self._expr_edit.setText(formula.expression)
        self._samples_spin.setValue(formula.samples)
        self._scale_spin.setValue(formula.scale_factor)
        for widget in (self._expr_edit, self._samples_spin, self._scale_spin):
            widget.blockSignals(False)
        self._error_lbl.setText("")
        self._rebuild_parameters(formula)
        self._refresh_latex()

    def _on_expression_edited(self) -> None:
        formula = self._current_formula()
        text = self._expr_edit.text()
        if formula is None or text == formula.expression:
            return
        ok, message = validate_expression(text, formula.type)
        self._error_lbl.setText(message)
        if not ok:
            self._status_lbl.setText("Invalid expression")
            return
        self._status_lbl.setText("Ready")
        self._replace_current(expression=text, name=None)
        new_formula = self._current_formula()
        if new_formula is not None:
            self._rebuild_parameters(new_formula)

    def _on_samples_changed(self, value: int) -> None:
        self._replace_current(samples=int(value))

    def _on_scale_changed(self, value: float) -> None:
        if value > 0:
            self._replace_current(scale_factor=float(value))

    def _rebuild_parameters(self, formula: Formula) -> None:
        while self._params_layout.rowCount():
            self._params_layout.removeRow(0)
        variable = "x" if formula.type is FormulaType.FUNCTION else "t"
        sources = formula.expression.split(";") if formula.type is FormulaType.PARAMETRIC else [formula.expression]
        seen: set[str] = set()
        for source in sources:
            for param in detect_parameters(source, variable):
                if param.name in seen:
                    continue
                seen.add(param.name)
                spin = QDoubleSpinBox()
                spin.setRange(param.min_value, param.max_value)
                spin.setSingleStep(param.step)
                spin.setValue(float(formula.parameters.get(param.name, param.default)))
                spin.valueChanged.connect(lambda v, n=param.name: self._on_parameter_changed(n, v))
                self._params_layout.addRow(param.name, spin)
        self._params_group.setVisible(bool(seen))

    def _on_parameter_changed(self, name: str, value: float) -> None:
        formula = self._current_formula()
        if formula is None:
            return
        parameters = dict(formula.parameters)
        parameters[name] = float(value)
        self._replace_current(parameters=parameters)

    def _refresh_latex(self) -> None:
        formula = self._current_formula()
        if formula is None:
            self._latex_output.clear()
            return
        self._latex_output.setPlainText(
            f"{self._latex.generate(formula.expression, formula.type)}\n"
            f"{format_for_display(formula.expression)}"
        )

    def copy_latex(self) -> None:
        text = self._latex_output.toPlainText()
        if text:
            QApplication.clipboard().setText(text.splitlines()[0])
            QMessageBox.information(self, "Copied", "LaTeX copied to clipboard.")


# ===========================================================================
# Entry point
# ===========================================================================

def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    window = PlotterWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
