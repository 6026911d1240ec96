"""Pytest configuration and fixtures for codeflow tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch) -> Path:
    """Point the user config file at a throwaway directory for every test.

    Keeps tests independent of whatever ``~/.codeflow/config.toml`` the
    developer running them has.
    """
    home = tmp_path_factory.mktemp("codeflow_home")
    config_file = home / "config.toml"
    monkeypatch.setattr("codeflow.config.CONFIG_FILE", config_file)
    monkeypatch.setattr("codeflow.config_manager.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def config_file(_isolated_config: Path) -> Path:
    return _isolated_config


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp.resolve()
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def make_project(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative path: content}`` into a fresh project root."""

    def _make(files: Dict[str, str]) -> Path:
        for rel, content in files.items():
            target = temp_dir / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return temp_dir

    return _make


@pytest.fixture
def sample_tsx_code() -> str:
    """Sample React component module for testing extractors."""
    return """import React, { useState } from 'react';
import { formatDate as fmt } from '../utils/format';
import * as api from '../api/client';

export interface CardProps {
  title: string;
}

export const Card: React.FC<CardProps> = ({ title }) => {
  const [open, setOpen] = useState(false);
  return (
    <div className="card" onClick={() => setOpen(!open)}>
      {title} {fmt(new Date())}
    </div>
  );
};

export const Badge = React.memo(({ text }: { text: string }) => <span>{text}</span>);

export function useToggle(initial = false) {
  const [value, setValue] = useState(initial);
  return [value, () => setValue(!value)];
}

export const loadCards = async () => api.get('/cards');

class Cache {
  private items = new Map();
}

export default Card;
"""
