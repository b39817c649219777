from __future__ import annotations

import keyword
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@dataclass
class AdviceMethod:
    export_name: str
    kind: str
    target_method: str
    sort_order: int


@dataclass
class AppliedAdvice:
    name: str
    source: str
    path: str
    module: str | None = None
    methods: List[AdviceMethod] = field(default_factory=list)


def _is_name(value: str) -> bool:
    return value.isidentifier() and not keyword.iskeyword(value)


def _attr_ref(obj: str, name: str) -> str:
    return f"{obj}.{name}" if _is_name(name) else f"getattr({obj}, {name!r})"


def _bind_export(name: str) -> str:
    if _is_name(name):
        return f"{name} = _wrapper.{name}"
    return f"globals()[{name!r}] = _wrapper[{name!r}]"


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=()),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["pyrepr"] = repr
    env.filters["attr_ref"] = _attr_ref
    env.filters["bind_export"] = _bind_export
    return env


def render_interceptor_source(
    target: str,
    target_path: str,
    advice: Sequence[AppliedAdvice],
    export_names: Sequence[str],
) -> str:
    """
    Python source that rebuilds the interception of one target file.

    Registrations appear in the order, and with the arguments, used for the
    in-process registry, so importing the generated module behaves exactly
    like the live wrapper.
    """
    template = _environment().get_template("interceptor.py.j2")
    return template.render(
        target=target,
        target_path=target_path,
        advice=list(advice),
        exports=tuple(export_names),
    )
