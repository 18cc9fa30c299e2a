"""Shared fixtures: isolated settings and a guide layer with recorded refreshes."""
from __future__ import annotations

import os
import sys

import pytest
from PyQt6.QtCore import QRectF

# Ensure project root is on sys.path so imports work
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import settings
import guides.layer as guide_layer
from guides.layer import GuideLayer
from settings import SettingsManager


class RefreshRecorder:
    """Stands in for the view controller's redraw hooks."""

    def __init__(self):
        self.rects = []
        self.full = 0

    def on_rect(self, rect):
        self.rects.append(QRectF(rect))

    def on_all(self):
        self.full += 1

    def reset(self):
        self.rects.clear()
        self.full = 0


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Use a throwaway settings dir and forget the cached default tolerance."""
    sm = SettingsManager(settings_dir=tmp_path / "config")
    monkeypatch.setattr(settings, "_settings_manager", sm)
    monkeypatch.setattr(guide_layer, "_default_snap_tolerance", None)
    yield sm


@pytest.fixture()
def recorder():
    return RefreshRecorder()


@pytest.fixture()
def layer(recorder):
    """A 500 x 400 layer with refresh callbacks wired to the recorder."""
    lyr = GuideLayer(QRectF(0, 0, 500, 400))
    lyr.set_refresh_callbacks(recorder.on_rect, recorder.on_all)
    return lyr
