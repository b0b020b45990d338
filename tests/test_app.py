from pathlib import Path

import pytest

from multi_ratio_crop.app import parse_args


def test_defaults_without_arguments():
    args = parse_args([])
    assert args.image is None
    assert args.log_level == "INFO"


def test_image_and_log_level():
    args = parse_args(["photos/cat.png", "--log-level", "DEBUG"])
    assert args.image == Path("photos/cat.png")
    assert args.log_level == "DEBUG"


def test_rejects_unknown_log_level():
    with pytest.raises(SystemExit):
        parse_args(["--log-level", "LOUD"])
