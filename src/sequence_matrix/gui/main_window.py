"""Main window for the Sequence Matrix GUI."""

import logging
import sys
from pathlib import Path
from typing import Optional

from PyQt5.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QTableWidget,
    QTableWidgetItem, QPushButton, QLabel, QFileDialog, QAction,
    QStatusBar, QHeaderView, QApplication
)
from PyQt5.QtCore import QThread, QSettings, pyqtSignal

from ..cancellation import CancellationToken
from ..coordinator import FileLoadCoordinator, LoadResult
from ..logging_config import setup_logging
from ..matrix import SequenceMatrix
from ..name_resolver import ImportSession
from ..queries import RememberingQueries
from .query_dialogs import QSettingsPreferenceStore, QtQueries

logger = logging.getLogger(__name__)

# How long closing the window waits for a cancelled load to finish
CLOSE_WAIT_MS = 3000
CLOSE_WAIT_STEP_MS = 100


class LoadThread(QThread):
    """Runs one load off the GUI thread."""
    
    load_finished = pyqtSignal(object)  # LoadResult
    
    def __init__(self, coordinator: FileLoadCoordinator, path: str,
                 format_hint: Optional[str] = None):
        super().__init__()
        self.coordinator = coordinator
        self.path = path
        self.format_hint = format_hint
        self.cancel_token = CancellationToken()
    
    def cancel(self):
        self.cancel_token.cancel()
    
    def run(self):
        result = self.coordinator.load(
            self.path, format_hint=self.format_hint, cancel_token=self.cancel_token
        )
        self.load_finished.emit(result)


class SequenceMatrixWindow(QMainWindow):
    """Shows the matrix and lets the user add files to it."""
    
    FILE_FILTER = (
        "Sequence files (*.fasta *.fas *.fa *.nex *.nexus *.nxs *.phy *.aln *.gb *.gbk);;"
        "All files (*)"
    )
    
    def __init__(self, settings: Optional[QSettings] = None, log_dir: str = ".sequence_matrix_gui_logs"):
        super().__init__()
        self.settings = settings or QSettings('SequenceMatrix', 'GUI')
        self.load_thread: Optional[LoadThread] = None
        
        setup_logging(log_level="INFO", log_dir=log_dir, console=False)
        
        self.matrix = SequenceMatrix()
        self.preferences = QSettingsPreferenceStore(self.settings)
        self.dialogs = QtQueries(self)
        self.queries = RememberingQueries(self.dialogs, self.preferences)
        self.session = ImportSession()
        self.coordinator = FileLoadCoordinator(self.matrix, self.queries, session=self.session)
        
        self.init_ui()
    
    def init_ui(self):
        """Initialize the user interface."""
        self.setWindowTitle("Sequence Matrix")
        self.setGeometry(100, 100, 1000, 700)
        
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout(central_widget)
        
        self.create_menu_bar()
        
        self.matrix_table = QTableWidget()
        self.matrix_table.horizontalHeader().setSectionResizeMode(QHeaderView.Interactive)
        layout.addWidget(self.matrix_table)
        
        buttons = QHBoxLayout()
        self.add_button = QPushButton("Add file...")
        self.add_button.clicked.connect(self.add_file)
        buttons.addWidget(self.add_button)
        
        self.cancel_button = QPushButton("Cancel load")
        self.cancel_button.setEnabled(False)
        self.cancel_button.clicked.connect(self.cancel_load)
        buttons.addWidget(self.cancel_button)
        
        buttons.addStretch()
        self.summary_label = QLabel("0 taxa, 0 sets")
        buttons.addWidget(self.summary_label)
        layout.addLayout(buttons)
        
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Ready")
    
    def create_menu_bar(self):
        """Create application menu bar."""
        menubar = self.menuBar()
        
        file_menu = menubar.addMenu("&File")
        
        self.add_action = QAction("&Add file...", self)
        self.add_action.setShortcut("Ctrl+O")
        self.add_action.triggered.connect(self.add_file)
        file_menu.addAction(self.add_action)
        
        file_menu.addSeparator()
        
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut("Ctrl+Q")
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)
        
        settings_menu = menubar.addMenu("&Settings")
        
        reset_names = QAction("Ask again which &name to use", self)
        reset_names.triggered.connect(self.session.reset_name_preference)
        settings_menu.addAction(reset_names)
        
        forget = QAction("&Forget 'yes to all' answers", self)
        forget.triggered.connect(lambda: self.queries.forget())
        settings_menu.addAction(forget)
    
    def add_file(self):
        last_dir = self.settings.value('last_directory', '')
        path, _ = QFileDialog.getOpenFileName(
            self, "Which file would you like to open?", last_dir, self.FILE_FILTER
        )
        if path:
            self.settings.setValue('last_directory', str(Path(path).parent))
            self.start_load(path)
    
    def start_load(self, path: str, format_hint: Optional[str] = None):
        if self.load_thread is not None and self.load_thread.isRunning():
            self.status_bar.showMessage("Another file is still loading")
            return
        
        self.set_loading(True)
        self.status_bar.showMessage(f"Loading {path}...")
        
        self.load_thread = LoadThread(self.coordinator, path, format_hint)
        self.load_thread.load_finished.connect(self.on_load_finished)
        self.load_thread.start()
    
    def cancel_load(self):
        if self.load_thread is not None:
            self.load_thread.cancel()
            self.status_bar.showMessage("Cancelling...")
    
    def set_loading(self, loading: bool):
        self.add_button.setEnabled(not loading)
        self.add_action.setEnabled(not loading)
        self.cancel_button.setEnabled(loading)
    
    def on_load_finished(self, result: LoadResult):
        self.set_loading(False)
        self.refresh_table()
        
        if result.success:
            self.status_bar.showMessage(
                f"Loaded {Path(result.path).name}: {len(result.units_merged)} set(s) added"
            )
        else:
            self.status_bar.showMessage(f"Could not load {Path(result.path).name}")
    
    def refresh_table(self):
        """Show informative character counts per taxon and set."""
        lengths = self.matrix.length_table()
        
        self.matrix_table.clear()
        self.matrix_table.setRowCount(len(lengths.index))
        self.matrix_table.setColumnCount(len(lengths.columns))
        self.matrix_table.setHorizontalHeaderLabels([str(c) for c in lengths.columns])
        self.matrix_table.setVerticalHeaderLabels([str(t) for t in lengths.index])
        
        for row, taxon in enumerate(lengths.index):
            for col, column in enumerate(lengths.columns):
                value = int(lengths.at[taxon, column])
                self.matrix_table.setItem(row, col, QTableWidgetItem(str(value) if value else ""))
        
        self.summary_label.setText(f"{self.matrix.taxon_count} taxa, {self.matrix.set_count} sets")
    
    def closeEvent(self, event):
        if self.load_thread is not None and self.load_thread.isRunning():
            self.load_thread.cancel()
            self.dialogs.close()
            # The worker may be blocked on a question queued to this thread
            for _ in range(CLOSE_WAIT_MS // CLOSE_WAIT_STEP_MS):
                QApplication.processEvents()
                if self.load_thread.wait(CLOSE_WAIT_STEP_MS):
                    break
            else:
                logger.warning(f"Load of {self.load_thread.path} still running at exit")
        event.accept()


def main():
    """Run the GUI."""
    app = QApplication(sys.argv)
    app.setApplicationName("Sequence Matrix")
    app.setOrganizationName("SequenceMatrix")
    app.setStyle('Fusion')
    
    window = SequenceMatrixWindow()
    window.show()
    
    sys.exit(app.exec_())


if __name__ == '__main__':
    main()
