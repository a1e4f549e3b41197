#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data Catalog Keyword Visualizer (PyQt6) with an interactive force-directed map.

Key features:

* Load a Project Open Data (1.1) catalog from a URL or a local JSON file.
* Aggregate the ``keyword`` lists of all datasets:

  * one circle per keyword, its **area** proportional to the number of datasets
    that carry it;
  * a line between two keywords whenever they tag the same dataset.
* Keyword table with checkboxes (Select / Keyword / Datasets), filter box,
  Select Top N / Select All / Clear Selection. Ticking a row adds the keyword
  to the map, unticking removes it together with its lines.
* Force layout (collision, links, repulsion, centering) animated on the canvas;
  drag a circle to pin it while the rest of the map settles around it.
* Hover a circle to see its keyword and dataset count, zoom with the wheel.
* Layout controls (charge, collision iterations, padding) re-heat the layout;
  aggregation options (symmetric links, counting repeated keywords) apply to
  the next load.
* Log panel records loads, dataset/keyword statistics, warnings and errors.

Run
    python KeywordAtlas.py [catalog-url-or-path]
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from PyQt6.QtCore import Qt, QObject, QThread, QTimer, pyqtSignal
from PyQt6.QtWidgets import (
    QApplication,
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLineEdit,
    QTableWidget,
    QTableWidgetItem,
    QAbstractItemView,
    QHeaderView,
    QCheckBox,
    QPushButton,
    QLabel,
    QSpinBox,
    QMessageBox,
    QPlainTextEdit,
    QProgressBar,
    QGroupBox,
)

# Matplotlib canvas
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg
from matplotlib.figure import Figure

import networkx as nx

from keyword_atlas import (
    AggregationPolicy,
    DuplicatePolicy,
    KeywordGraph,
    KeywordSession,
    LayoutConfig,
    MplSceneBackend,
    fetch_catalog,
)
from keyword_atlas.config import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    CHARGE_STRENGTH,
    DEFAULT_LOCATION,
    FRAME_INTERVAL_MS,
    ITERATIONS,
    NUMBER_INITIAL_KEYWORDS,
    PADDING,
)
from keyword_atlas.logging_config import LOGGER_NAME, setup_logging


# --------------------------- Log forwarding ---------------------------

class LogBridge(QObject):
    """Carries log lines from any thread to the GUI thread."""
    message = pyqtSignal(str, str)     # tag, text


class QtLogHandler(logging.Handler):
    """Forward ``keyword_atlas`` log records into the log panel."""

    def __init__(self, bridge: LogBridge):
        super().__init__(level=logging.INFO)
        self.bridge = bridge

    def emit(self, record: logging.LogRecord) -> None:
        tag = record.name.rsplit(".", 1)[-1]
        if record.levelno >= logging.WARNING:
            tag = f"{tag}:{record.levelname.lower()}"
        self.bridge.message.emit(tag, record.getMessage())


# --------------------------- Worker (QThread target) -----------------

class LoadWorker(QObject):
    """Background worker that fetches a catalog and aggregates its keywords."""

    progress = pyqtSignal(int, str)     # percent, message
    finished = pyqtSignal(object)       # KeywordGraph
    failed = pyqtSignal(str)

    def __init__(self, session: KeywordSession, location: str):
        """Store the session (for its aggregation policy) and the catalog location."""
        super().__init__()
        self.session = session
        self.location = location
        self._last_pct = -1

    def _on_progress(self, done: int, total: int) -> None:
        pct = 100 if total == 0 else int(100 * done / total)
        if pct != self._last_pct or done == total:
            self._last_pct = pct
            self.progress.emit(pct, f"Processed {done} of {total} datasets.")

    def run(self) -> None:
        """Fetch, validate and aggregate, then emit the finished graph."""
        try:
            self.progress.emit(0, "Fetching catalog...")
            document = fetch_catalog(self.location)
            graph = self.session.aggregate(document, self._on_progress)
            self.finished.emit(graph)
        except Exception as e:
            self.failed.emit(f"{type(e).__name__}: {e}")


# --------------------------- Canvas ---------------------------

class MplCanvas(FigureCanvasQTAgg):
    """A Matplotlib canvas embedded in Qt with mouse wheel zoom."""

    def __init__(self, parent: Optional[QWidget] = None):
        """Create a single-axes figure and hide axes by default."""
        fig = Figure(constrained_layout=True)
        super().__init__(fig)
        self.setParent(parent)
        self.ax = self.figure.add_subplot(111)
        self.ax.set_axis_off()
        self._zoom_factor = 1.2

    def wheelEvent(self, event):
        """Zoom the axes keeping the mouse position as focal point."""
        x = event.position().x()
        # Qt measures y from the top, matplotlib from the bottom
        y = self.height() - event.position().y()
        ratio = self.devicePixelRatioF()

        inv = self.ax.transData.inverted()
        xdata, ydata = inv.transform((x * ratio, y * ratio))

        xlim = self.ax.get_xlim()
        ylim = self.ax.get_ylim()

        scale = 1 / self._zoom_factor if event.angleDelta().y() > 0 else self._zoom_factor

        self.ax.set_xlim([
            xdata - (xdata - xlim[0]) * scale,
            xdata + (xlim[1] - xdata) * scale,
        ])
        self.ax.set_ylim([
            ydata - (ydata - ylim[0]) * scale,
            ydata + (ylim[1] - ydata) * scale,
        ])
        self.draw_idle()


# --------------------------- Main Window -------------------------------

class MainWindow(QMainWindow):
    """Main window: catalog controls, keyword table, layout controls, log and map."""

    def __init__(self, location: Optional[str] = None):
        """Construct UI, connect signals and start the animation timer."""
        super().__init__()
        self.setWindowTitle("KeywordAtlas: Data Catalog Keyword Map")
        self.resize(1500, 900)

        # Left: location + table + controls + log
        left = QWidget(self)
        left_v = QVBoxLayout(left)

        loc_row = QHBoxLayout()
        loc_row.addWidget(QLabel("Catalog:"))
        self.edit_location = QLineEdit(location or DEFAULT_LOCATION)
        self.edit_location.setPlaceholderText("URL or path of a data.json catalog")
        loc_row.addWidget(self.edit_location, 1)
        self.btn_map = QPushButton("Map Keywords ▶")
        loc_row.addWidget(self.btn_map)
        left_v.addLayout(loc_row)

        filter_row = QHBoxLayout()
        filter_row.addWidget(QLabel("Filter:"))
        self.edit_filter = QLineEdit()
        self.edit_filter.setPlaceholderText("Keyword text, or >=N for keywords in at least N datasets")
        filter_row.addWidget(self.edit_filter, 1)
        btn_clear_filter = QPushButton("Clear")
        filter_row.addWidget(btn_clear_filter)
        left_v.addLayout(filter_row)

        # Table: checkbox + keyword + dataset count
        self.table = QTableWidget(0, 3, self)
        self.table.setHorizontalHeaderLabels(["Select", "Keyword", "Datasets"])
        self.table.verticalHeader().setVisible(False)
        self.table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(2, QHeaderView.ResizeMode.ResizeToContents)
        left_v.addWidget(self.table, 3)

        sel_row = QHBoxLayout()
        self.btn_select_top = QPushButton(f"Select Top {NUMBER_INITIAL_KEYWORDS}")
        self.btn_select_all = QPushButton("Select All")
        self.btn_clear_sel = QPushButton("Clear Selection")
        sel_row.addWidget(self.btn_select_top)
        sel_row.addWidget(self.btn_select_all)
        sel_row.addWidget(self.btn_clear_sel)
        sel_row.addStretch(1)
        left_v.addLayout(sel_row)

        # Controls box
        ctrl_box = QGroupBox("Map Controls")
        ctrl = QVBoxLayout(ctrl_box)
        ctrl.setSpacing(6)

        rowA = QHBoxLayout()
        rowA.addWidget(QLabel("Initial keywords:"))
        self.spin_initial = QSpinBox()
        self.spin_initial.setRange(0, 500)
        self.spin_initial.setValue(NUMBER_INITIAL_KEYWORDS)
        rowA.addWidget(self.spin_initial)

        self.chk_symmetric = QCheckBox("Symmetric links")
        self.chk_symmetric.setChecked(True)
        self.chk_symmetric.setToolTip("Record each co-occurrence on both keywords")
        rowA.addWidget(self.chk_symmetric)

        self.chk_repeats = QCheckBox("Count repeated keywords")
        self.chk_repeats.setChecked(False)
        self.chk_repeats.setToolTip("Count a keyword listed twice in one dataset twice")
        rowA.addWidget(self.chk_repeats)
        rowA.addStretch(1)
        ctrl.addLayout(rowA)

        rowB = QHBoxLayout()
        rowB.addWidget(QLabel("Charge:"))
        self.spin_charge = QSpinBox()
        self.spin_charge.setRange(-1000, 0)
        self.spin_charge.setValue(int(CHARGE_STRENGTH))
        rowB.addWidget(self.spin_charge)

        rowB.addWidget(QLabel("Collide iters:"))
        self.spin_collide = QSpinBox()
        self.spin_collide.setRange(1, 64)
        self.spin_collide.setValue(ITERATIONS)
        rowB.addWidget(self.spin_collide)

        rowB.addWidget(QLabel("Padding:"))
        self.spin_padding = QSpinBox()
        self.spin_padding.setRange(0, 200)
        self.spin_padding.setValue(PADDING)
        rowB.addWidget(self.spin_padding)
        rowB.addStretch(1)
        ctrl.addLayout(rowB)
        left_v.addWidget(ctrl_box)

        log_box = QGroupBox("Log")
        log_v = QVBoxLayout(log_box)
        self.txt_log = QPlainTextEdit()
        self.txt_log.setReadOnly(True)
        log_v.addWidget(self.txt_log)
        left_v.addWidget(log_box, 1)

        # Right pane: canvas + progress
        right = QWidget(self)
        right_v = QVBoxLayout(right)
        self.canvas = MplCanvas(self)
        right_v.addWidget(self.canvas, 1)

        self.progress = QProgressBar()
        self.progress.setRange(0, 100)
        self.progress.setValue(0)
        right_v.addWidget(self.progress)

        root = QWidget(self)
        root_h = QHBoxLayout(root)
        root_h.addWidget(left, 2)
        root_h.addWidget(right, 4)
        self.setCentralWidget(root)

        # State
        self.session = KeywordSession(
            MplSceneBackend(self.canvas.ax, CANVAS_WIDTH, CANVAS_HEIGHT),
            policy=self._aggregation_policy(),
            layout=self._layout_config(),
        )
        self.thread: Optional[QThread] = None
        self.worker: Optional[LoadWorker] = None

        # Library log records → log panel
        self._log_bridge = LogBridge()
        self._log_bridge.message.connect(self._log)
        setup_logging(logging.INFO)
        logging.getLogger(LOGGER_NAME).addHandler(QtLogHandler(self._log_bridge))

        # Connections
        self.btn_map.clicked.connect(self.map_keywords)
        self.edit_location.returnPressed.connect(self.map_keywords)
        self.edit_filter.textChanged.connect(self.apply_filter)
        btn_clear_filter.clicked.connect(self.edit_filter.clear)
        self.btn_select_top.clicked.connect(self.select_top)
        self.btn_select_all.clicked.connect(self.select_all)
        self.btn_clear_sel.clicked.connect(self.clear_selection)

        self.spin_initial.valueChanged.connect(self._on_policy_changed)
        self.chk_symmetric.stateChanged.connect(self._on_policy_changed)
        self.chk_repeats.stateChanged.connect(self._on_policy_changed)
        self.spin_charge.valueChanged.connect(self._on_layout_params_changed)
        self.spin_collide.valueChanged.connect(self._on_layout_params_changed)
        self.spin_padding.valueChanged.connect(self._on_layout_params_changed)

        self._style_map_button()

        # One simulation step per frame
        self.timer = QTimer(self)
        self.timer.timeout.connect(self.session.step)
        self.timer.start(FRAME_INTERVAL_MS)

        if location:
            self.map_keywords()

    # -------- Log panel --------
    def _log(self, tag: str, msg: str) -> None:
        """Append ``[HH:MM:SS] [tag] msg``; warnings and errors are also shown in the status bar."""
        stamp = datetime.now().strftime("%H:%M:%S")
        self.txt_log.appendPlainText(f"[{stamp}] [{tag}] {msg}")
        if tag.endswith((":warning", ":error")) or tag == "error":
            self.statusBar().showMessage(msg, 5000)

    # -------- Style helpers --------
    def _style_map_button(self) -> None:
        self.btn_map.setObjectName("mapButton")
        self.setStyleSheet("""
            QPushButton#mapButton {
                background-color: #FFD27F;
                color: #3B2A00;
                border: 1px solid #E0A93B;
                border-radius: 4px;
                padding: 5px 14px;
                font-weight: bold;
            }
            QPushButton#mapButton:hover { background-color: #FFDC99; }
            QPushButton#mapButton:disabled { background-color: #EEE4D0; color: #8A8070; }
        """)
        self.btn_map.setMinimumHeight(30)
        self.btn_map.setCursor(Qt.CursorShape.PointingHandCursor)

    # -------- Configuration from controls --------
    def _aggregation_policy(self) -> AggregationPolicy:
        return AggregationPolicy(
            initial_keywords=self.spin_initial.value(),
            symmetric_links=self.chk_symmetric.isChecked(),
            duplicates=DuplicatePolicy.COUNT_EACH if self.chk_repeats.isChecked()
            else DuplicatePolicy.COUNT_ONCE,
        )

    def _layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            width=CANVAS_WIDTH,
            height=CANVAS_HEIGHT,
            charge_strength=float(self.spin_charge.value()),
            collide_iterations=self.spin_collide.value(),
            padding=float(self.spin_padding.value()),
        )

    def _on_policy_changed(self) -> None:
        self.session.policy = self._aggregation_policy()
        self.btn_select_top.setText(f"Select Top {self.spin_initial.value()}")
        self._log("policy", "aggregation options apply to the next load")

    def _on_layout_params_changed(self) -> None:
        self.session.set_layout(replace(self.session.engine.config, **{
            "charge_strength": float(self.spin_charge.value()),
            "collide_iterations": self.spin_collide.value(),
            "padding": float(self.spin_padding.value()),
        }))
        self._log("layout", f"charge={self.spin_charge.value()}, collide iters={self.spin_collide.value()}, "
                  f"padding={self.spin_padding.value()}")

    # -------- Loading --------
    def map_keywords(self) -> None:
        location = self.edit_location.text().strip()
        if not location:
            QMessageBox.information(self, "No catalog", "Please enter a catalog URL or path.")
            return
        if self.session.loading:
            self._log("load", "a catalog is already loading")
            return

        self.session.begin_load()
        self.progress.setValue(0)
        self.progress.setFormat("Starting...")
        self.btn_map.setEnabled(False)
        self._log("load", location)

        self.thread = QThread()
        self.worker = LoadWorker(self.session, location)
        self.worker.moveToThread(self.thread)
        self.thread.started.connect(self.worker.run)
        self.worker.progress.connect(self.on_worker_progress)
        self.worker.finished.connect(self.on_worker_finished)
        self.worker.failed.connect(self.on_worker_failed)
        self.worker.finished.connect(lambda *_: self._cleanup_worker())
        self.worker.failed.connect(lambda *_: self._cleanup_worker())
        self.thread.start()

    def _cleanup_worker(self) -> None:
        if self.thread is not None:
            self.thread.quit()
            self.thread.wait()
        self.session.end_load()
        self.btn_map.setEnabled(True)

    def on_worker_progress(self, pct: int, msg: str) -> None:
        self.progress.setValue(pct)
        self.progress.setFormat(msg)

    def on_worker_finished(self, graph: KeywordGraph) -> None:
        report = self.session.apply_graph(graph)
        G = graph.to_networkx()
        components = nx.number_connected_components(G) if G.number_of_nodes() else 0
        self._log("ready", f"datasets={report.records}, keywords={report.keywords}, "
                  f"pairs={G.number_of_edges()}, components={components}, shown={report.shown}")
        for warning in report.warnings:
            QMessageBox.information(self, "Empty catalog", str(warning))
        self._populate_table(graph)

    def on_worker_failed(self, error_msg: str) -> None:
        self._log("error", error_msg)
        self.progress.setFormat("Load failed.")
        QMessageBox.warning(self, "Load failed", error_msg)

    # -------- Keyword table --------
    def _populate_table(self, graph: KeywordGraph) -> None:
        self.table.setRowCount(0)
        for node in graph:
            row = self.table.rowCount()
            self.table.insertRow(row)
            cb = QCheckBox()
            cb.setChecked(node.show)
            cb.toggled.connect(lambda checked, kw=node.id: self._on_keyword_toggled(kw, checked))
            self.table.setCellWidget(row, 0, cb)
            self.table.setItem(row, 1, QTableWidgetItem(node.id))
            citem = QTableWidgetItem(str(node.dataset_count))
            citem.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self.table.setItem(row, 2, citem)
        self.apply_filter()

    def _on_keyword_toggled(self, keyword: str, checked: bool) -> None:
        self.session.toggle(keyword, checked)

    def apply_filter(self) -> None:
        """Hide rows not matching the filter box.

        Plain text matches keywords by substring; ``>=N`` keeps keywords
        tagging at least N datasets.
        """
        text = self.edit_filter.text().strip()
        number = text[2:].strip() if text.startswith(">=") else ""
        min_count = int(number) if number.isdigit() else None
        needle = text.lower()
        for row in range(self.table.rowCount()):
            kw_item = self.table.item(row, 1)
            count_item = self.table.item(row, 2)
            if kw_item is None or count_item is None:
                continue
            if min_count is not None:
                keep = int(count_item.text()) >= min_count
            else:
                keep = needle in kw_item.text().lower()
            self.table.setRowHidden(row, not keep)

    def _checked_keywords(self) -> List[str]:
        names: List[str] = []
        for row in range(self.table.rowCount()):
            w = self.table.cellWidget(row, 0)
            if isinstance(w, QCheckBox) and w.isChecked():
                item = self.table.item(row, 1)
                if item:
                    names.append(item.text())
        return names

    def _set_checks(self, predicate) -> None:
        """Set all checkboxes at once, then redraw a single time."""
        for row in range(self.table.rowCount()):
            w = self.table.cellWidget(row, 0)
            if isinstance(w, QCheckBox):
                w.blockSignals(True)
                w.setChecked(predicate(row))
                w.blockSignals(False)
        self.session.set_visible(self._checked_keywords())

    def select_top(self) -> None:
        n = self.spin_initial.value()
        self._set_checks(lambda row: row < n)

    def select_all(self) -> None:
        self._set_checks(lambda row: not self.table.isRowHidden(row)
                         or bool(self.table.cellWidget(row, 0).isChecked()))

    def clear_selection(self) -> None:
        self._set_checks(lambda row: False)


# --------------------------- Entrypoint ----------------------------

def main() -> None:
    """Qt application entry point: create the main window and start the event loop."""
    app = QApplication(sys.argv)
    args = app.arguments()[1:]
    win = MainWindow(args[0] if args else None)
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
