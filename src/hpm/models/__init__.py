from __future__ import annotations

from hpm.models.packages import InstalledPackage, PackageDescriptor
from hpm.models.reply import Command, ParsedCommand, RemoveDirective, ReplyItem

__all__ = [
    # packages
    "PackageDescriptor",
    "InstalledPackage",
    # reply
    "Command",
    "ParsedCommand",
    "ReplyItem",
    "RemoveDirective",
]
