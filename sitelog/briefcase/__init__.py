"""
Briefcase Module

Assembles what the assistant is told before it answers: the action items
on record and the command format it may use to change them.
"""

from .assembler import ContextAssembler
from .templates import AssistantTemplates

__all__ = ["ContextAssembler", "AssistantTemplates"]
