# onboarding/product_catalog.py

"""
Centralized catalog of the financial products a client can apply for.
It defines which products carry credit (and therefore need a term) and the
limits every requested line is checked against.
"""

from onboarding.schemas.enums import ProductCode

MAX_REQUESTED_AMOUNT = 10_000_000
MAX_TERM_MONTHS = 60

PRODUCTS_CATALOG = {
    ProductCode.simple_credit: {
        "product_name": "Crédito Simple",
        "is_credit": True,
        "max_amount": MAX_REQUESTED_AMOUNT,
        "max_term_months": MAX_TERM_MONTHS,
    },
    ProductCode.current_account_credit: {
        "product_name": "Crédito en Cuenta Corriente",
        "is_credit": True,
        "max_amount": MAX_REQUESTED_AMOUNT,
        "max_term_months": MAX_TERM_MONTHS,
    },
    ProductCode.auto_financing: {
        "product_name": "Financiamiento Automotriz",
        "is_credit": True,
        "max_amount": MAX_REQUESTED_AMOUNT,
        "max_term_months": MAX_TERM_MONTHS,
    },
    ProductCode.leasing: {
        "product_name": "Arrendamiento",
        "is_credit": True,
        "max_amount": MAX_REQUESTED_AMOUNT,
        "max_term_months": MAX_TERM_MONTHS,
    },
    ProductCode.savings_account: {
        "product_name": "Cuenta de Ahorro",
        "is_credit": False,
        "max_amount": MAX_REQUESTED_AMOUNT,
        "max_term_months": None,
    },
    ProductCode.checking_account: {
        "product_name": "Cuenta de Cheques",
        "is_credit": False,
        "max_amount": MAX_REQUESTED_AMOUNT,
        "max_term_months": None,
    },
}


def is_credit_product(code: ProductCode) -> bool:
    return PRODUCTS_CATALOG[ProductCode(code)]["is_credit"]


def product_name(code: ProductCode) -> str:
    return PRODUCTS_CATALOG[ProductCode(code)]["product_name"]


def product_line_errors(index: int, line) -> list:
    """Field-level errors for one requested product line.

    ``line`` is a dict with ``product_code``, ``amount`` and ``term_months``.
    """
    prefix = f"products.{index}"
    errors = []
    try:
        code = ProductCode(line.get("product_code"))
    except ValueError:
        return [{"field": f"{prefix}.product_code", "message": f"Unknown product code '{line.get('product_code')}'"}]

    entry = PRODUCTS_CATALOG[code]
    amount = line.get("amount")
    term = line.get("term_months")

    if amount is None or amount < 0:
        errors.append({"field": f"{prefix}.amount", "message": "amount must be zero or greater"})
    elif amount > entry["max_amount"]:
        errors.append({"field": f"{prefix}.amount", "message": f"amount cannot exceed {entry['max_amount']:,}"})
    elif entry["is_credit"] and amount == 0:
        errors.append({"field": f"{prefix}.amount", "message": f"{entry['product_name']} requires an amount greater than zero"})

    if entry["is_credit"]:
        if term is None:
            errors.append({"field": f"{prefix}.term_months", "message": f"{entry['product_name']} requires a term in months"})
        elif not 1 <= term <= entry["max_term_months"]:
            errors.append({
                "field": f"{prefix}.term_months",
                "message": f"term_months must be between 1 and {entry['max_term_months']}",
            })
    return errors


def validate_requested_products(lines) -> list:
    """Check every requested line and return the accumulated errors.

    An empty request is itself an error; lines keep their submitted order.
    """
    if not lines:
        return [{"field": "products", "message": "At least one product is required"}]
    errors = []
    for index, line in enumerate(lines):
        errors.extend(product_line_errors(index, line))
    return errors
