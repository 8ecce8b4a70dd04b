"""
PSP Tools - fixed analytics queries exposed as ``POST /api/psp/<tool>``.
"""

from .tools import PSP_TOOLS, PspTool

__all__ = ["PSP_TOOLS", "PspTool"]
