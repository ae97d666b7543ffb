from app.core import errors

ROLE_CASHIER = "Cashier"
ROLE_RECEIVING_CLERK = "Receiving Clerk"
ROLE_STORE_MANAGER = "Store Manager"

CHECKOUT_ROLES = (ROLE_CASHIER, ROLE_STORE_MANAGER)
RECEIVING_ROLES = (ROLE_RECEIVING_CLERK, ROLE_STORE_MANAGER)

CURRENCY_QUANTUM = "0.01"

# Column limits shared by models and input validation.
MAX_ROW_ID = 2**63 - 1
EMPLOYEE_ID_MAX_LENGTH = 50
MONEY_PRECISION = 12
MONEY_SCALE = 2

ERROR_STATUS_CODES = {
    errors.INVALID_INPUT: 400,
    errors.NOT_FOUND: 404,
    errors.INSUFFICIENT_STOCK: 409,
    errors.BARCODE_CONFLICT: 409,
    errors.CONCURRENT_MODIFICATION: 500,
    errors.STORE_UNAVAILABLE: 503,
}
