import os
import subprocess
import sys
from pathlib import Path
from typing import Dict

import pytest

from stencil import Environment, MemoryLoader


def write(path: Path, text: str) -> Path:
    """Записывает файл, создавая родительские каталоги."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def memory_env(templates: Dict[str, str], **options) -> Environment:
    """Окружение с загрузчиком из словаря."""
    return Environment(loader=MemoryLoader(templates), **options)


def run_cli(root: Path, *args: str) -> subprocess.CompletedProcess:
    """Запускает CLI в подпроцессе в каталоге root."""
    env = os.environ.copy()
    return subprocess.run(
        [sys.executable, "-m", "stencil", *args],
        cwd=root, env=env, capture_output=True, text=True, encoding="utf-8"
    )


@pytest.fixture
def env() -> Environment:
    return Environment()


@pytest.fixture
def layout_templates() -> Dict[str, str]:
    """Трёхуровневая цепочка наследования в памяти."""
    return {
        "/layout.html": (
            "<html><head>{% block title %}Site{% endblock %}</head>"
            "<body>{% block body %}{% endblock %}</body></html>"
        ),
        "/section.html": (
            '{% extends "layout.html" %}'
            "{% block title %}{% parent %} / Section{% endblock %}"
            "{% block body %}<nav></nav>{% block content %}{% endblock %}{% endblock %}"
        ),
        "/page.html": (
            '{% extends "section.html" %}'
            "{% block title %}{% parent %} / {{ name }}{% endblock %}"
            "{% block content %}Hello {{ name }}!{% endblock %}"
        ),
    }


@pytest.fixture
def tmp_templates(tmp_path: Path) -> Path:
    """Каталог шаблонов на диске: макросы, include и extends."""
    write(tmp_path / "macros.html", (
        '{% macro field(name, value) %}<input name="{{ name }}" value="{{ value }}">{% endmacro %}'
        "{% macro label(text) %}<label>{{ text }}</label>{% endmacro %}"
        "{% macro row(name, value) %}{{ label(name) }}{{ field(name, value) }}{% endmacro %}"
    ))
    write(tmp_path / "layout.html", "<main>{% block content %}default{% endblock %}</main>")
    write(tmp_path / "partials" / "greeting.html", "Hi {{ who }}")
    write(tmp_path / "page.html", (
        '{% extends "./layout.html" %}'
        '{% block content %}{% include "./partials/greeting.html" %}{% endblock %}'
    ))
    return tmp_path
