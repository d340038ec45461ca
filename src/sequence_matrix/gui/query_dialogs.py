"""Import questions rendered as Qt message boxes."""

from typing import Any, Callable, List, Optional

from PyQt5.QtCore import QObject, QSettings, QThread, Qt, pyqtSignal
from PyQt5.QtWidgets import QMessageBox, QWidget

from ..preferences import coerce_preference
from ..queries import QueryAnswer


class QtQueries(QObject):
    """Modal dialogs for the import questions.

    Loads run on a worker thread; questions asked from there are handed to
    the GUI thread and the worker blocks until the dialog is closed.
    """
    
    _request = pyqtSignal(object)
    
    BUTTON_ANSWERS = {
        QMessageBox.Yes: QueryAnswer.YES,
        QMessageBox.No: QueryAnswer.NO,
        QMessageBox.YesToAll: QueryAnswer.YES_TO_ALL,
        QMessageBox.NoToAll: QueryAnswer.NO_TO_ALL,
        QMessageBox.Cancel: QueryAnswer.CANCEL,
    }
    
    def __init__(self, parent_widget: Optional[QWidget] = None):
        super().__init__()
        self.parent_widget = parent_widget
        self.closed = False
        self._request.connect(self._run_request, Qt.BlockingQueuedConnection)
    
    def close(self):
        """Stop showing dialogs; pending and later questions get their default answer."""
        self.closed = True
    
    def _on_gui_thread(self, func: Callable, *args, default: Any = None) -> Any:
        if self.closed:
            return default
        if QThread.currentThread() == self.thread():
            return func(*args)
        request = {'func': func, 'args': args, 'result': default}
        self._request.emit(request)
        return request['result']
    
    def _run_request(self, request: dict):
        # Queued before close() but delivered after it
        if not self.closed:
            request['result'] = request['func'](*request['args'])
    
    def _message_box(self, title: str, message: str, buttons, default) -> QueryAnswer:
        box = QMessageBox(QMessageBox.Question, title, message, buttons, self.parent_widget)
        box.setDefaultButton(default)
        clicked = box.exec_()
        return self.BUTTON_ANSWERS.get(clicked, QueryAnswer.CANCEL)
    
    def ask_yes_no(self, key: str, title: str, message: str,
                   allow_to_all: bool = False) -> QueryAnswer:
        buttons = QMessageBox.Yes | QMessageBox.No
        if allow_to_all:
            buttons |= QMessageBox.YesToAll | QMessageBox.NoToAll
        answer = self._on_gui_thread(self._message_box, title, message, buttons, QMessageBox.Yes,
                                     default=QueryAnswer.CANCEL)
        # Closing the box counts as "no"
        return QueryAnswer.NO if answer is QueryAnswer.CANCEL else answer
    
    def ask_yes_no_cancel(self, key: str, title: str, message: str) -> QueryAnswer:
        buttons = QMessageBox.Yes | QMessageBox.No | QMessageBox.Cancel
        return self._on_gui_thread(self._message_box, title, message, buttons, QMessageBox.Cancel,
                                   default=QueryAnswer.CANCEL)
    
    def _choose(self, title: str, message: str, choices: List[str]) -> Optional[int]:
        box = QMessageBox(QMessageBox.Question, title, message, QMessageBox.NoButton, self.parent_widget)
        buttons = [box.addButton(choice, QMessageBox.AcceptRole) for choice in choices]
        box.exec_()
        clicked = box.clickedButton()
        for index, button in enumerate(buttons):
            if button is clicked:
                return index
        return None
    
    def choose(self, key: str, title: str, message: str,
               choices: List[str]) -> Optional[int]:
        if not choices:
            return None
        return self._on_gui_thread(self._choose, title, message, choices)
    
    def _notify(self, title: str, message: str):
        QMessageBox.information(self.parent_widget, title, message)
    
    def notify(self, title: str, message: str) -> None:
        self._on_gui_thread(self._notify, title, message)


class QSettingsPreferenceStore:
    """Preference store on top of QSettings."""
    
    def __init__(self, settings: QSettings):
        self.settings = settings
    
    def get(self, key: str, default: Any = None,
            minimum: Optional[float] = None, maximum: Optional[float] = None) -> Any:
        if not self.settings.contains(key):
            return default
        return coerce_preference(self.settings.value(key), default, minimum, maximum)
    
    def set(self, key: str, value: Any) -> None:
        self.settings.setValue(key, value)
        self.settings.sync()
