import sys
import os
import asyncio
import webbrowser
from typing import Optional

from PyQt5.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit,
    QPushButton, QComboBox, QTextBrowser, QFileDialog, QMessageBox
)
from PyQt5.QtCore import Qt, QThread, pyqtSignal, QObject, QEvent, QUrl

from earthview import ChronicleSession, DataSource, init_project
from earthview.logging_setup import configure_logging, get_logger
from earthview.map_create import create_session_map, _esc

logger = get_logger(__name__)


class WorkerThread(QThread):
    result_ready = pyqtSignal(object)

    def __init__(self, coro_func, *args, **kwargs):
        super().__init__()
        self.coro_func = coro_func
        self.args = args
        self.kwargs = kwargs

    def run(self):
        try:
            result = asyncio.run(self.coro_func(*self.args, **self.kwargs))
            self.result_ready.emit(result)
        except Exception as e:
            logger.exception("worker failed")
            self.result_ready.emit(e)


class CloseShortcutFilter(QObject):
    def eventFilter(self, obj, event):
        if event.type() == QEvent.KeyPress and event.key() == Qt.Key_W:
            modifiers = event.modifiers()
            if modifiers & (Qt.ControlModifier | Qt.MetaModifier):
                window = QApplication.activeWindow()
                if window is not None and hasattr(window, 'close'):
                    window.close()
                    return True
        return super().eventFilter(obj, event)


class MainWindow(QMainWindow):
    def __init__(self, data_base: Optional[str] = None):
        super().__init__()
        self._base_title = 'Omniscient Earth View'
        self.setWindowTitle(self._base_title)
        self.resize(900, 700)
        self.project_folder = os.getcwd()
        self.paths = init_project(self.project_folder)
        self.session: Optional[ChronicleSession] = None
        self._workers = []
        self._populating = False
        self.init_ui()
        if data_base:
            self.source_edit.setText(data_base)
            self.load_groups()
        self._close_filter = CloseShortcutFilter()
        QApplication.instance().installEventFilter(self._close_filter)

    def init_ui(self):
        self.container = QWidget()
        self.setCentralWidget(self.container)
        main_layout = QVBoxLayout(self.container)

        # Data source
        source_layout = QHBoxLayout()
        self.source_edit = QLineEdit()
        self.source_edit.setPlaceholderText('https://example.org or a local data folder')
        browse_btn = QPushButton('Browse...')
        browse_btn.clicked.connect(self.browse_source)
        self.load_btn = QPushButton('Load Groups')
        self.load_btn.clicked.connect(self.load_groups)
        source_layout.addWidget(QLabel('Data:'))
        source_layout.addWidget(self.source_edit, 1)
        source_layout.addWidget(browse_btn)
        source_layout.addWidget(self.load_btn)
        main_layout.addLayout(source_layout)

        # Group + location selection
        select_layout = QHBoxLayout()
        self.group_combo = QComboBox()
        self.group_combo.currentIndexChanged.connect(self.on_group_changed)
        self.location_combo = QComboBox()
        self.location_combo.currentIndexChanged.connect(self.on_location_changed)
        select_layout.addWidget(QLabel('Group:'))
        select_layout.addWidget(self.group_combo, 1)
        select_layout.addWidget(QLabel('Location:'))
        select_layout.addWidget(self.location_combo, 1)
        main_layout.addLayout(select_layout)

        # List controls
        controls = QHBoxLayout()
        self.list_title = QLabel('All news')
        self.list_title.setStyleSheet('font-weight: 600;')
        self.show_all_btn = QPushButton('Show All')
        self.show_all_btn.clicked.connect(self.on_show_all)
        self.toggle_list_btn = QPushButton('Hide List')
        self.toggle_list_btn.clicked.connect(self.on_toggle_list)
        self.map_btn = QPushButton('Open Map')
        self.map_btn.clicked.connect(self.open_map)
        controls.addWidget(self.list_title, 1)
        controls.addWidget(self.show_all_btn)
        controls.addWidget(self.toggle_list_btn)
        controls.addWidget(self.map_btn)
        main_layout.addLayout(controls)

        self.news_view = QTextBrowser()
        self.news_view.setOpenLinks(False)
        self.news_view.anchorClicked.connect(self.on_anchor)
        main_layout.addWidget(self.news_view, 1)

        self.status_label = QLabel('No data loaded')
        main_layout.addWidget(self.status_label)

    # --- loading ---

    def browse_source(self):
        folder = QFileDialog.getExistingDirectory(self, 'Select Data Folder', self.project_folder)
        if folder:
            self.source_edit.setText(folder)

    def _start_worker(self, coro_func, callback, *args):
        worker = WorkerThread(coro_func, *args)
        worker.result_ready.connect(callback)
        # QThread.finished fires after run() has returned
        worker.finished.connect(lambda w=worker: self._release_worker(w))
        self._workers.append(worker)
        worker.start()

    def _release_worker(self, worker):
        worker.wait()
        if worker in self._workers:
            self._workers.remove(worker)

    def load_groups(self):
        base = self.source_edit.text().strip()
        if not base:
            QMessageBox.warning(self, 'No Data Source', 'Enter a web root or choose a data folder.')
            return
        source = DataSource(base)
        # One session for the window lifetime; its generation keeps growing across reloads
        if self.session is None:
            self.session = ChronicleSession(source)
        else:
            self.session.set_source(source)
        self._populating = True
        self.group_combo.clear()
        self._populating = False
        self.status_label.setText('Loading groups...')
        self.refresh()
        self._start_worker(
            source.fetch_groups,
            lambda result, src=source: self.on_groups_loaded(src, result),
        )

    def on_groups_loaded(self, source, result):
        groups = result if isinstance(result, list) else []
        if not self.session.apply_groups(source, groups):
            return
        self._populating = True
        self.group_combo.clear()
        for group in groups:
            self.group_combo.addItem(group.title, group.id)
        self._populating = False
        if not groups:
            self.status_label.setText('No groups available')
            self.refresh()
            return
        self.group_combo.setCurrentIndex(0)
        self.on_group_changed(0)

    def on_group_changed(self, index):
        if self._populating or self.session is None or index < 0:
            return
        group = self.session.find_group(self.group_combo.itemData(index))
        if group is None:
            return
        generation = self.session.begin_group(group)
        self.setWindowTitle(f'{self._base_title} - {group.title}')
        self.status_label.setText(f'Loading {group.title}...')
        self.refresh()
        self._start_worker(
            self.session.fetch_detail,
            lambda result, gen=generation: self.on_detail_loaded(gen, result),
            group,
        )

    def on_detail_loaded(self, generation, result):
        records = result if isinstance(result, list) else None
        if not self.session.apply_detail(generation, records):
            return
        self.status_label.setText(
            f'{len(self.session.records)} locations, {len(self.session.clusters)} list entries'
        )
        self.refresh()

    # --- selection ---

    def on_location_changed(self, index):
        if self._populating or self.session is None:
            return
        if index <= 0:
            self.session.selection.show_all()
        else:
            record = self.session.records[index - 1]
            self.session.selection.select_location(record)
            self._report_fly_to()
        self.refresh()

    def on_show_all(self):
        if self.session is None:
            return
        self.session.selection.show_all()
        self.refresh()

    def on_toggle_list(self):
        if self.session is None:
            return
        self.session.selection.toggle_list()
        self.refresh()

    def on_anchor(self, url: QUrl):
        if self.session is None:
            return
        action, _, value = url.toString().partition(':')
        visible = self.session.visible_clusters()
        try:
            cluster = visible[int(value)]
        except (ValueError, IndexError):
            return
        if action == 'toggle':
            self.session.selection.toggle_item(cluster.title)
        elif action == 'view':
            self.session.selection.view_location(cluster.coordinates)
            self._report_fly_to()
        elif action == 'open' and cluster.url:
            webbrowser.open(cluster.url)
        self.refresh()

    def _report_fly_to(self):
        command = getattr(self.session.selection.viewport, 'last', None)
        if command is not None:
            lon, lat = command.center
            self.status_label.setText(f'Fly to {lat:.4f}, {lon:.4f} (zoom {command.zoom})')

    # --- rendering ---

    def refresh(self):
        session = self.session
        selection = session.selection if session else None

        self._populating = True
        self.location_combo.clear()
        self.location_combo.addItem('All locations')
        if session:
            for record in session.records:
                self.location_combo.addItem(record.name or 'Unnamed location')
            if selection.selected is not None:
                for idx, record in enumerate(session.records):
                    if selection.is_selected(record):
                        self.location_combo.setCurrentIndex(idx + 1)
                        break
        self._populating = False

        if selection is None:
            self.news_view.clear()
            return
        self.list_title.setText(selection.list_title)
        self.show_all_btn.setEnabled(selection.selected is not None)
        self.toggle_list_btn.setText('Hide List' if selection.list_visible else 'Show List')
        self.news_view.setVisible(selection.list_visible)
        self.news_view.setHtml(self._list_html())

    def _list_html(self):
        selection = self.session.selection
        rows = []
        for idx, cluster in enumerate(self.session.visible_clusters()):
            expanded = selection.is_expanded(cluster.title)
            badge = f' <b style="color:#4f46e5;">+{cluster.duplicate_count}</b>' if cluster.duplicate_count > 0 else ''
            arrow = '&#9650;' if expanded else '&#9660;'
            row = [
                f'<p><a href="toggle:{idx}">{arrow}</a> '
                f'<small>{_esc(cluster.publisher.upper())}{badge} &middot; {_esc(cluster.date or "")}</small><br>'
                f'<b>{_esc(cluster.title)}</b><br>'
                f'<small>{_esc(cluster.location_name)} &middot; {_esc(cluster.venue)}</small>'
            ]
            if expanded:
                row.append(f'<br><a href="view:{idx}">View location</a>')
                if cluster.url:
                    row.append(f' &nbsp; <a href="open:{idx}">Open article</a>')
            row.append('</p>')
            rows.append(''.join(row))
        if not rows:
            return '<p><i>No entries.</i></p>'
        return '<hr>'.join(rows)

    def open_map(self):
        if self.session is None or self.session.active_group is None:
            QMessageBox.information(self, 'No Data', 'Load a group first.')
            return
        result = create_session_map(self.session, out_dir=self.paths['output'])
        map_path = result.get('map_path')
        if map_path:
            webbrowser.open('file://' + os.path.abspath(map_path))


if __name__ == '__main__':
    configure_logging(os.environ.get('EARTHVIEW_LOG_LEVEL', 'INFO'))
    app = QApplication(sys.argv)
    win = MainWindow(sys.argv[1] if len(sys.argv) > 1 else None)
    win.show()
    sys.exit(app.exec_())
