"""Capability bindings over the host automation runtime."""

from __future__ import annotations

from dataclasses import dataclass

from .base import (
    CapabilityBinding,
    HostCallError,
    HostError,
    HostOperations,
    HostResponseError,
    HttpHost,
    MissingCapabilityError,
    ensure_capabilities,
    stringify_arg,
)
from .browser import BrowserTabs
from .editor import Editor
from .git import GitRepo
from .ocr import OcrReader
from .spreadsheet import Spreadsheet
from .thunderbird import Thunderbird
from .window import WindowManager

__all__ = [
    "BrowserTabs",
    "Capabilities",
    "CapabilityBinding",
    "Editor",
    "GitRepo",
    "HostCallError",
    "HostError",
    "HostOperations",
    "HostResponseError",
    "HttpHost",
    "MissingCapabilityError",
    "OcrReader",
    "Spreadsheet",
    "Thunderbird",
    "WindowManager",
    "build_capabilities",
    "ensure_capabilities",
    "stringify_arg",
]


@dataclass
class Capabilities:
    """One binding per host capability, all sharing a single host."""

    host: HostOperations
    browser: BrowserTabs
    spreadsheet: Spreadsheet
    git: GitRepo
    ocr: OcrReader
    editor: Editor
    windows: WindowManager
    mail: Thunderbird

    async def require(self, *namespaces: str) -> None:
        await ensure_capabilities(self.host, namespaces)


def build_capabilities(host: HostOperations) -> Capabilities:
    """Build the binding bundle for *host*."""
    return Capabilities(
        host=host,
        browser=BrowserTabs(host),
        spreadsheet=Spreadsheet(host),
        git=GitRepo(host),
        ocr=OcrReader(host),
        editor=Editor(host),
        windows=WindowManager(host),
        mail=Thunderbird(host),
    )
