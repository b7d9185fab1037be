# services/invoice_renderer.py
import io
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain.entities.order import Order, PaymentMethod, PaymentStatus
from domain.entities.user import Buyer

logger = logging.getLogger(__name__)

BRAND = colors.HexColor("#4F46E5")
MUTED = colors.HexColor("#6B7280")
ROW_ALT = colors.HexColor("#F9FAFB")
GRID = colors.HexColor("#E5E7EB")

TERMS = [
    "This is a computer generated invoice.",
    "Goods once sold will not be taken back.",
    "Subject to Mumbai jurisdiction only.",
]

_UNITS = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
          "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
          "Seventeen", "Eighteen", "Nineteen"]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


def _two_digits(n: int) -> str:
    if n < 20:
        return _UNITS[n]
    tens, unit = divmod(n, 10)
    return f"{_TENS[tens]} {_UNITS[unit]}".strip()


def amount_in_words(amount: Decimal) -> str:
    """Spell a rupee amount using the Indian numbering system (crore, lakh, thousand)."""
    n = int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if n == 0:
        return "Zero"
    if n < 0:
        return f"Minus {amount_in_words(Decimal(-n))}"

    words = []
    crores, n = divmod(n, 10_000_000)
    if crores:
        words.append(f"{amount_in_words(Decimal(crores))} Crore")
    lakhs, n = divmod(n, 100_000)
    if lakhs:
        words.append(f"{_two_digits(lakhs)} Lakh")
    thousands, n = divmod(n, 1000)
    if thousands:
        words.append(f"{_two_digits(thousands)} Thousand")
    hundreds, n = divmod(n, 100)
    if hundreds:
        words.append(f"{_UNITS[hundreds]} Hundred")
    if n:
        if words:
            words.append("and")
        words.append(_two_digits(n))
    return " ".join(words)


def format_money(amount: Decimal) -> str:
    return f"Rs. {Decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,}"


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if value else "N/A"


class SellerIdentity:
    def __init__(self, shop_name: str, legal_name: str, address: str, gstin: str, phone: str, email: str,
                 website: str):
        self.shop_name = shop_name
        self.legal_name = legal_name
        self.address = address
        self.gstin = gstin
        self.phone = phone
        self.email = email
        self.website = website

    @classmethod
    def from_settings(cls, settings) -> "SellerIdentity":
        return cls(
            shop_name=settings.SHOP_NAME,
            legal_name=settings.SELLER_NAME,
            address=settings.SELLER_ADDRESS,
            gstin=settings.SELLER_GSTIN,
            phone=settings.SELLER_PHONE,
            email=settings.SELLER_EMAIL,
            website=settings.SELLER_WEBSITE,
        )


class InvoiceRenderer:
    """Lays out an order as an A4 tax invoice PDF."""

    def __init__(self, seller: SellerIdentity):
        self.seller = seller
        styles = getSampleStyleSheet()
        self.body = ParagraphStyle("InvoiceBody", parent=styles["Normal"], fontSize=9, leading=12)
        self.heading = ParagraphStyle("InvoiceHeading", parent=styles["Heading4"], fontSize=10,
                                      spaceAfter=2, spaceBefore=0)
        self.brand = ParagraphStyle("InvoiceBrand", parent=styles["Title"], fontSize=22, textColor=BRAND,
                                    alignment=0, spaceAfter=0)
        self.title = ParagraphStyle("InvoiceTitle", parent=styles["Heading2"], alignment=TA_RIGHT, spaceAfter=0)
        self.right = ParagraphStyle("InvoiceRight", parent=self.body, alignment=TA_RIGHT)

    def _p(self, text: str, style: Optional[ParagraphStyle] = None) -> Paragraph:
        return Paragraph(text, style or self.body)

    def _lines(self, *lines: str) -> Paragraph:
        return self._p("<br/>".join(escape(line) for line in lines if line))

    def _header(self, order: Order, invoice_number: str, issued_at: datetime) -> Table:
        left = [self._p(escape(self.seller.shop_name), self.brand)]
        right = [
            self._p("TAX INVOICE", self.title),
            self._p(f"Invoice #: {escape(invoice_number)}<br/>Date: {format_date(issued_at)}", self.right),
        ]
        table = Table([[left, right]], colWidths=[95 * mm, 85 * mm])
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LINEBELOW", (0, 0), (-1, 0), 1, GRID),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ]))
        return table

    def _parties(self, order: Order, buyer: Optional[Buyer]) -> Table:
        address = order.shipping_address
        name = (buyer.name if buyer and buyer.name else None) or address.name or "Customer"
        email = (buyer.email if buyer else None) or "Not provided"
        phone = (buyer.phone if buyer else None) or address.phone or "Not provided"

        seller_block = [
            self._p("Sold By:", self.heading),
            self._lines(self.seller.legal_name, self.seller.address, f"GSTIN: {self.seller.gstin}",
                        f"Phone: {self.seller.phone}"),
        ]
        buyer_block = [
            self._p("Bill To:", self.heading),
            self._lines(name, f"Email: {email}", f"Phone: {phone}", address.one_line()),
        ]
        ship_block = [
            self._p("Ship To:", self.heading),
            self._lines(address.name, address.address,
                        f"{address.city}, {address.state} - {address.postal_code}" if address.state
                        else f"{address.city} - {address.postal_code}",
                        f"{address.country} | Phone: {address.phone}"),
        ]
        table = Table([[seller_block, buyer_block, ship_block]], colWidths=[62 * mm, 59 * mm, 59 * mm])
        table.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        return table

    def _order_meta(self, order: Order) -> Table:
        labels = ["Order ID", "Order Date", "Payment", "Status"]
        values = [f"ORD-{order.short_id}", format_date(order.created_at), order.payment_method.value,
                  order.order_status.value.capitalize()]
        table = Table([labels, values], colWidths=[45 * mm] * 4)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), ROW_ALT),
            ("BOX", (0, 0), (-1, -1), 0.5, GRID),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("TEXTCOLOR", (0, 0), (-1, 0), MUTED),
        ]))
        return table

    def _items(self, order: Order) -> Table:
        rows: List[list] = [["Description", "Qty", "Unit Price", "Total"]]
        for item in order.line_items:
            rows.append([self._p(escape(item.name)), str(item.quantity), format_money(item.unit_price),
                         format_money(item.line_total)])
        table = Table(rows, colWidths=[95 * mm, 20 * mm, 30 * mm, 35 * mm], repeatRows=1)
        style = [
            ("BACKGROUND", (0, 0), (-1, 0), BRAND),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("ALIGN", (1, 0), (1, -1), "CENTER"),
            ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LINEBELOW", (0, 1), (-1, -1), 0.5, GRID),
        ]
        for index in range(1, len(rows)):
            if index % 2 == 1:
                style.append(("BACKGROUND", (0, index), (-1, index), ROW_ALT))
        table.setStyle(TableStyle(style))
        return table

    def _summary(self, order: Order) -> List:
        amounts = order.amounts
        rows = [
            ["Subtotal:", format_money(amounts.subtotal)],
            ["Tax (18% GST):", format_money(amounts.tax)],
            ["Shipping:", format_money(amounts.shipping)],
        ]
        if amounts.discount > 0:
            label = f"Discount ({order.coupon_code}):" if order.coupon_code else "Discount:"
            rows.append([label, f"-{format_money(amounts.discount)}"])
        rows.append(["Grand Total:", format_money(amounts.grand_total)])

        table = Table(rows, colWidths=[40 * mm, 35 * mm], hAlign="RIGHT")
        table.setStyle(TableStyle([
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("LINEABOVE", (0, -1), (-1, -1), 1, GRID),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("TEXTCOLOR", (1, -1), (1, -1), colors.HexColor("#059669")),
        ]))
        words = self._p(f"Amount in words: {amount_in_words(amounts.grand_total)} Rupees Only")
        return [table, Spacer(1, 4 * mm), words]

    def _payment(self, order: Order) -> List:
        lines = [
            f"Payment Method: {order.payment_method.value}",
            f"Payment Status: {order.payment_status.value.upper()}",
            f"Order Status: {order.order_status.value.capitalize()}",
        ]
        if order.paid_at:
            lines.append(f"Paid On: {format_date(order.paid_at)}")
        if order.gateway_payment_id:
            lines.append(f"Transaction ID: {order.gateway_payment_id}")
        if order.tracking_number:
            courier = f" ({order.courier_name})" if order.courier_name else ""
            lines.append(f"Tracking: {order.tracking_number}{courier}")
        flow = [self._p("Payment Information:", self.heading), self._lines(*lines)]
        if order.payment_status == PaymentStatus.PENDING and order.payment_method != PaymentMethod.CASH_ON_DELIVERY:
            flow.append(self._p('<font color="#DC2626">Please complete payment within 7 days to avoid '
                                'order cancellation.</font>'))
        return flow

    def _draw_footer(self, canvas, doc) -> None:
        width, _ = A4
        canvas.saveState()
        canvas.setStrokeColor(GRID)
        canvas.setLineWidth(0.5)
        canvas.line(15 * mm, 25 * mm, width - 15 * mm, 25 * mm)
        canvas.setFont("Helvetica", 7.5)
        canvas.setFillColor(MUTED)
        for offset, line in enumerate(TERMS):
            canvas.drawString(15 * mm, 21 * mm - offset * 3.5 * mm, line)
        contact = [self.seller.website, self.seller.email, f"Phone: {self.seller.phone}"]
        for offset, line in enumerate(contact):
            canvas.drawRightString(width - 15 * mm, 21 * mm - offset * 3.5 * mm, line)
        canvas.setFillColor(BRAND)
        canvas.setFont("Helvetica-Bold", 8)
        canvas.drawCentredString(width / 2, 8 * mm, f"Page {doc.page}")
        canvas.restoreState()

    def render(self, order: Order, buyer: Optional[Buyer], invoice_number: str, issued_at: datetime) -> bytes:
        """Render the invoice and return the PDF bytes."""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=15 * mm,
            rightMargin=15 * mm,
            topMargin=15 * mm,
            bottomMargin=32 * mm,
            title=f"Invoice {invoice_number}",
            author=self.seller.legal_name,
        )
        story = [
            self._header(order, invoice_number, issued_at),
            Spacer(1, 5 * mm),
            self._parties(order, buyer),
            Spacer(1, 5 * mm),
            self._order_meta(order),
            Spacer(1, 6 * mm),
            self._items(order),
            Spacer(1, 6 * mm),
            *self._summary(order),
            Spacer(1, 6 * mm),
            *self._payment(order),
        ]
        doc.build(story, onFirstPage=self._draw_footer, onLaterPages=self._draw_footer)
        content = buffer.getvalue()
        logger.debug(f"Rendered invoice {invoice_number} for order {order.id} ({len(content)} bytes)")
        return content
