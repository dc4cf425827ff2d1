import io
from app.schemas.cheque import ChequeResponse


def _money(cheque: ChequeResponse) -> str:
    return f"{cheque.currency} {cheque.amount:,.2f}"


def render_cheque_pdf(cheque: ChequeResponse) -> io.BytesIO:
    """Lay out a single cheque with a detachable stub on a letter page."""
    from reportlab.lib.pagesizes import letter
    from reportlab.lib.units import inch
    from reportlab.pdfgen import canvas

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.setTitle(f"Cheque {cheque.number}")
    w, h = letter

    # Header
    c.setFont("Helvetica-Bold", 16)
    c.drawString(1 * inch, h - 1 * inch, "CHEQUE")
    c.setFont("Helvetica", 10)
    c.drawRightString(w - 1 * inch, h - 1 * inch, f"No. {cheque.number}")
    c.drawRightString(w - 1 * inch, h - 1.2 * inch, f"Date: {cheque.issue_date.strftime('%d/%m/%Y')}")
    c.drawRightString(w - 1 * inch, h - 1.4 * inch, f"Due: {cheque.due_date.strftime('%d/%m/%Y')}")

    # Payee
    c.setFont("Helvetica", 11)
    c.drawString(1 * inch, h - 1.8 * inch, f"Pay to the order of: {cheque.payee_name}")
    c.setFont("Helvetica-Bold", 14)
    c.drawRightString(w - 1 * inch, h - 1.8 * inch, _money(cheque))

    c.setFont("Helvetica", 9)
    if cheque.notes:
        c.drawString(1 * inch, h - 2.3 * inch, f"Notes: {cheque.notes[:110]}")

    # Signature line
    c.line(1 * inch, h - 2.8 * inch, w - 1 * inch, h - 2.8 * inch)
    c.setFont("Helvetica", 8)
    c.drawString(1 * inch, h - 3.0 * inch, "Authorized Signature")

    # Stub
    c.line(0.5 * inch, h - 3.5 * inch, w - 0.5 * inch, h - 3.5 * inch)
    c.setFont("Helvetica-Bold", 10)
    c.drawString(1 * inch, h - 4.0 * inch, "CHEQUE STUB - RETAIN FOR YOUR RECORDS")
    c.setFont("Helvetica", 9)
    y = h - 4.4 * inch
    for label, val in [
        ("Cheque Number", cheque.number),
        ("Issue Date", cheque.issue_date.strftime("%d/%m/%Y")),
        ("Due Date", cheque.due_date.strftime("%d/%m/%Y")),
        ("Payee", cheque.payee_name),
        ("Amount", _money(cheque)),
        ("Status", cheque.status_label),
    ]:
        c.drawString(1 * inch, y, f"{label}: {val}")
        y -= 0.2 * inch

    c.save()
    buf.seek(0)
    return buf
