import pytest

import multi_ratio_crop.main_window as main_window_mod
from multi_ratio_crop.main_window import MainWindow


@pytest.fixture
def window(qtbot):
    w = MainWindow()
    qtbot.addWidget(w)
    return w


@pytest.fixture
def warnings(monkeypatch):
    calls = []
    monkeypatch.setattr(main_window_mod.QMessageBox, "warning", lambda *args: calls.append(args))
    return calls


def test_open_image_starts_session(window, tmp_path, make_image):
    path = tmp_path / "cat.png"
    path.write_bytes(make_image(300, 200))

    assert window.open_image(path, run_wizard=False)
    assert window.controller.step == 1
    assert window.controller.source.media_type == "image/png"


def test_open_invalid_image_warns(window, tmp_path, warnings):
    path = tmp_path / "broken.png"
    path.write_bytes(b"nope")

    assert not window.open_image(path, run_wizard=False)
    assert len(warnings) == 1
    assert not window.controller.is_active


def test_saved_bundle_is_shown_and_written(window, tmp_path, make_image, monkeypatch):
    path = tmp_path / "cat.png"
    path.write_bytes(make_image(300, 200))
    window.open_image(path, run_wizard=False)
    assert not window._act_save_all.isEnabled()

    ctrl = window.controller
    for _ in range(3):
        ctrl.advance()
    ctrl.save()

    assert window.bundle is not None
    assert window._act_save_all.isEnabled()
    assert window._results_layout.count() == 4

    out_dir = tmp_path / "out"
    monkeypatch.setattr(
        main_window_mod.QFileDialog, "getExistingDirectory", lambda *args, **kwargs: str(out_dir),
    )
    window._save_all()
    assert sorted(p.name for p in out_dir.iterdir()) == [
        "cat.png", "cat_landscape.png", "cat_portrait.png", "cat_square.png",
    ]
