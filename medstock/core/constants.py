REQUEST_REQUESTED = "requested"
REQUEST_APPROVED = "approved"
REQUEST_REJECTED = "rejected"
REQUEST_STATUSES = (REQUEST_REQUESTED, REQUEST_APPROVED, REQUEST_REJECTED)

ALERT_LOW_STOCK = "LOW_STOCK"
ALERT_STOCK_INCREASED = "STOCK_INCREASED"

ALERT_UNREAD = "unread"
ALERT_READ = "read"

# Upper bound of a 32-bit INTEGER column, the narrowest backend we target.
MAX_QUANTITY = 2_147_483_647

MSG_ALREADY_INITIALIZED = "Already initialized"
MSG_ALREADY_PROCESSED = "Request already processed"
MSG_STOCK_NOT_FOUND = "Stock not found"
MSG_REQUEST_NOT_FOUND = "Request not found"
MSG_SERVER_ERROR = "Server error"
