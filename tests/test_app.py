import os

import pytest

QtWidgets = pytest.importorskip("PyQt5.QtWidgets")
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import app as viewer
from earthview.loader import DataSource
from earthview.models import GroupDescriptor
from earthview.session import ChronicleSession

GROUP_A = GroupDescriptor(id="a", title="A", data_path="data/a.json")


@pytest.fixture(scope="module")
def qapp():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def window(qapp, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    win = viewer.MainWindow()
    yield win
    for worker in list(win._workers):
        worker.wait(5000)
    win.close()


def _drain(qapp, done, attempts=200):
    for _ in range(attempts):
        qapp.processEvents()
        if done():
            return True
    return False


def test_worker_is_kept_until_thread_has_stopped(qapp, window) -> None:
    results = []

    async def work():
        return 42

    window._start_worker(work, results.append)
    worker = window._workers[0]

    assert worker.wait(5000)
    assert _drain(qapp, lambda: not window._workers)
    assert results == [42]
    assert worker.isFinished()


def test_group_list_from_previous_source_is_not_shown(window, tmp_path) -> None:
    stale = DataSource(str(tmp_path / "old"))
    window.session = ChronicleSession(stale)
    window.session.set_source(DataSource(str(tmp_path / "new")))

    window.on_groups_loaded(stale, [GROUP_A])

    assert window.group_combo.count() == 0
    assert window.session.groups == []


def test_detail_from_previous_source_is_not_applied(window, tmp_path, group_a_records) -> None:
    window.session = ChronicleSession(DataSource(str(tmp_path / "old")))
    old_generation = window.session.begin_group(GROUP_A)
    window.session.set_source(DataSource(str(tmp_path / "new")))
    window.session.begin_group(GROUP_A)

    window.on_detail_loaded(old_generation, group_a_records)

    assert window.session.records == []
    assert window.location_combo.count() == 0
