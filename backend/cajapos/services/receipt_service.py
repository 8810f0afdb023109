# Overview: Service-layer operations for receipts; plain-text rendering and best-effort printing.

"""
Receipt printing is best-effort: it runs after the sale has committed and
its outcome never touches the sale. With PRINTER_ENABLED off (the default)
the receipt is only logged.
"""

from __future__ import annotations

from flask import current_app

from ..money import quantize
from ..validation import parse_amount, parse_int, require_json_object

RECEIPT_WIDTH = 32
STORE_HEADER = "CAJAPOS"


def render_receipt(payload) -> str:
    """Fixed-width text for a thermal printer."""
    data = require_json_object(payload)
    lines = [STORE_HEADER.center(RECEIPT_WIDTH), "-" * RECEIPT_WIDTH]

    for item in data.get("items") or []:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or item.get("product_name") or item.get("product_id") or "")
        quantity = parse_int(item.get("quantity"), "La cantidad", required=False) or 0
        price = parse_amount(item.get("price_at_sale", item.get("price")), "El precio", required=False)
        subtotal = quantize(price * quantity) if price is not None else None
        left = f"{quantity} x {name}"[: RECEIPT_WIDTH - 12]
        right = f"${subtotal}" if subtotal is not None else ""
        lines.append(f"{left:<{RECEIPT_WIDTH - 12}}{right:>12}")

    total = parse_amount(data.get("total_amount", data.get("total")), "El total", required=False)
    lines.append("-" * RECEIPT_WIDTH)
    if total is not None:
        lines.append(f"{'TOTAL':<{RECEIPT_WIDTH - 12}}{'$' + str(total):>12}")
    if data.get("payment_method"):
        lines.append(f"Pago: {data['payment_method']}")
    lines.append("")
    return "\n".join(lines)


def print_receipt(payload) -> bool:
    """
    Send a receipt to the printer.

    Returns True when the printer took it, False when printing is disabled
    or the device could not be written.
    """
    receipt = render_receipt(payload)
    current_app.logger.info("Receipt print requested:\n%s", receipt)

    if not current_app.config.get("PRINTER_ENABLED"):
        return False

    device = current_app.config["PRINTER_DEVICE"]
    try:
        with open(device, "w", encoding="utf-8") as printer:
            printer.write(receipt + "\n\n\n")
    except OSError:
        current_app.logger.warning("Receipt printer unavailable at %s", device, exc_info=True)
        return False
    return True
