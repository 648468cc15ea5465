"""Adapter selection by language and fidelity mode."""

from __future__ import annotations

from typing import Dict, Tuple, Type

from .adapter_css import CssAdapter
from .adapter_html import HtmlAdapter
from .adapter_java import JavaConceptualAdapter, JavaFullAdapter
from .adapter_js import JsConceptualAdapter, JsFullAdapter
from .adapter_python import PythonConceptualAdapter, PythonFullAdapter
from .config import MODE_ADVANCED, MODE_SIMPLE, MODES
from .parser import JS_FAMILY
from .walker import AstAdapter

# family -> (advanced adapter, simple adapter)
_ADAPTERS: Dict[str, Tuple[Type[AstAdapter], Type[AstAdapter]]] = {
    "javascript": (JsFullAdapter, JsConceptualAdapter),
    "html": (HtmlAdapter, HtmlAdapter),
    "css": (CssAdapter, CssAdapter),
    "java": (JavaFullAdapter, JavaConceptualAdapter),
    "python": (PythonFullAdapter, PythonConceptualAdapter),
}


def adapter_family(language: str) -> str:
    return "javascript" if language in JS_FAMILY else language


def select_adapter(language: str, mode: str = MODE_ADVANCED) -> AstAdapter:
    """Return a fresh adapter for *language* in *mode* (``simple``/``advanced``).

    HTML and CSS have a single structural walker used for both modes.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown mode '{mode}', expected one of {', '.join(MODES)}")
    try:
        full, conceptual = _ADAPTERS[adapter_family(language)]
    except KeyError:
        raise ValueError(f"No graph adapter for language '{language}'") from None
    return conceptual() if mode == MODE_SIMPLE else full()
