"""Render chunk wire strings as QR codes."""

from __future__ import annotations

from typing import Iterable

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from stellar_multisig.features.chunking.codec import QRChunk, encode


def build_qr(wire: str, error_correction: int = ERROR_CORRECT_M) -> qrcode.QRCode:
    qr = qrcode.QRCode(version=None, error_correction=error_correction, box_size=1, border=1)
    qr.add_data(wire)
    qr.make(fit=True)
    return qr


def render_text(wire: str, error_correction: int = ERROR_CORRECT_M) -> str:
    qr = build_qr(wire, error_correction)
    qr_str = ""
    for row in qr.modules:
        qr_str += "".join(["██" if cell else "  " for cell in row]) + "\n"
    return qr_str


def render_frames(
    chunks: Iterable[QRChunk], error_correction: int = ERROR_CORRECT_M
) -> list[str]:
    """One text frame per chunk, in part order, for an animated display."""
    ordered = sorted(chunks, key=lambda chunk: chunk.part_index)
    return [render_text(encode(chunk), error_correction) for chunk in ordered]

