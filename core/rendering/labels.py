"""Localized document labels and currency symbols."""

from enum import Enum

from core.models.company import Currency, Language


class Direction(str, Enum):
    LTR = "ltr"
    RTL = "rtl"


def default_direction(language: Language) -> Direction:
    return Direction.RTL if language.is_rtl else Direction.LTR


LABELS: dict[str, dict[Language, str]] = {
    "invoice": {
        Language.IT: "FATTURA",
        Language.EN: "INVOICE",
        Language.AR: "فاتورة",
        Language.DE: "RECHNUNG",
    },
    "bill_to": {
        Language.IT: "Fattura a:",
        Language.EN: "Bill To:",
        Language.AR: "فاتورة إلى:",
        Language.DE: "Rechnung an:",
    },
    "invoice_number": {
        Language.IT: "Numero fattura",
        Language.EN: "Invoice #",
        Language.AR: "رقم الفاتورة",
        Language.DE: "Rechnung Nr.",
    },
    "invoice_date": {
        Language.IT: "Data fattura",
        Language.EN: "Invoice Date",
        Language.AR: "تاريخ الفاتورة",
        Language.DE: "Rechnungsdatum",
    },
    "status": {
        Language.IT: "Stato",
        Language.EN: "Status",
        Language.AR: "الحالة",
        Language.DE: "Status",
    },
    "paid": {
        Language.IT: "Pagato",
        Language.EN: "Paid",
        Language.AR: "مدفوع",
        Language.DE: "Bezahlt",
    },
    "unpaid": {
        Language.IT: "Non pagato",
        Language.EN: "Unpaid",
        Language.AR: "غير مدفوع",
        Language.DE: "Unbezahlt",
    },
    "product": {
        Language.IT: "Prodotto",
        Language.EN: "Product",
        Language.AR: "المنتج",
        Language.DE: "Produkt",
    },
    "price": {
        Language.IT: "Prezzo",
        Language.EN: "Price",
        Language.AR: "السعر",
        Language.DE: "Preis",
    },
    "discount": {
        Language.IT: "Sconto %",
        Language.EN: "Discount %",
        Language.AR: "الخصم %",
        Language.DE: "Rabatt %",
    },
    "amount": {
        Language.IT: "Importo",
        Language.EN: "Amount",
        Language.AR: "المبلغ",
        Language.DE: "Betrag",
    },
    "subtotal": {
        Language.IT: "Subtotale:",
        Language.EN: "Subtotal:",
        Language.AR: "المجموع الفرعي:",
        Language.DE: "Zwischensumme:",
    },
    "tax": {
        Language.IT: "Tassa:",
        Language.EN: "Tax:",
        Language.AR: "الضريبة:",
        Language.DE: "Steuer:",
    },
    "total": {
        Language.IT: "Totale:",
        Language.EN: "Total:",
        Language.AR: "الإجمالي:",
        Language.DE: "Gesamt:",
    },
    "notes": {
        Language.IT: "Note:",
        Language.EN: "Notes:",
        Language.AR: "ملاحظات:",
        Language.DE: "Notizen:",
    },
    "terms": {
        Language.IT: "Termini e condizioni:",
        Language.EN: "Terms & Conditions:",
        Language.AR: "الشروط والأحكام:",
        Language.DE: "AGB:",
    },
    "select_client": {
        Language.IT: "Clicca per selezionare un cliente",
        Language.EN: "Click to select client",
        Language.AR: "انقر لتحديد العميل",
        Language.DE: "Klicken Sie, um einen Kunden auszuwählen",
    },
    "select_date": {
        Language.IT: "Seleziona data",
        Language.EN: "Select date",
        Language.AR: "حدد تاريخًا",
        Language.DE: "Datum auswählen",
    },
    "add_products": {
        Language.IT: "Clicca per aggiungere prodotti",
        Language.EN: "Click to add products",
        Language.AR: "انقر لإضافة منتجات",
        Language.DE: "Klicken Sie, um Produkte hinzuzufügen",
    },
    "add_notes": {
        Language.IT: "Clicca per aggiungere nota",
        Language.EN: "Click to add notes",
        Language.AR: "انقر لإضافة ملاحظات",
        Language.DE: "Klicken Sie, um Notizen hinzuzufügen",
    },
    "add_terms": {
        Language.IT: "Clicca per aggiungere termini",
        Language.EN: "Click to add terms",
        Language.AR: "انقر لإضافة شروط",
        Language.DE: "Klicken Sie, um AGB hinzuzufügen",
    },
}


CURRENCY_SYMBOLS: dict[Currency, str] = {
    Currency.CHF: "CHF",
    Currency.USD: "$",
    Currency.EGP: "EGP",
}

# Overrides for right-to-left documents
RTL_CURRENCY_SYMBOLS: dict[Currency, str] = {
    Currency.EGP: "ج.م",
}


def label(key: str, language: Language) -> str:
    """Label text for a key. Raises KeyError for an unknown key."""
    return LABELS[key][language]


def currency_symbol(currency: Currency | str | None, direction: Direction = Direction.LTR) -> str:
    """
    Printed symbol for a currency code.

    EGP prints in Arabic script in right-to-left documents. Unknown or
    missing codes print as CHF.
    """
    try:
        currency = Currency(currency)
    except ValueError:
        currency = Currency.CHF

    if direction == Direction.RTL and currency in RTL_CURRENCY_SYMBOLS:
        return RTL_CURRENCY_SYMBOLS[currency]
    return CURRENCY_SYMBOLS[currency]
