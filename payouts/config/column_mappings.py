"""
Column Mappings Configuration

Central source of truth for export header -> logical field mappings and
for engine column -> report header mappings.

Naming conventions:
- Export headers: original names from courier/fulfillment exports (mixed case, spaces)
- Engine columns: snake_case, shared by every DataFrame in the engine
- Report headers: human readable, used when writing report files
"""

# =============================================================================
# ORDER EXPORTS: logical field -> header synonyms (auto-detection)
# =============================================================================
# Synonyms are compared after lower-casing the header and replacing every
# non-alphanumeric character with "_". A header matches when it contains the
# normalized synonym.
HEADER_SYNONYMS = {
    "supplier_name": ["supplier_name", "supplier", "vendor", "pickup_warehouse", "pickup warehouse"],
    "awb_no": ["awb_no", "awb", "tracking_no", "tracking no", "airway_bill", "airway bill", "waybill"],
    "product_name": ["product_name", "product", "item", "item_name", "sku_name", "sku name"],
    "status": ["status", "order_status", "delivery_status"],
    "courier": ["courier", "carrier", "logistics_partner", "logistics partner"],
    "order_account": ["order_account", "order account", "account", "email", "customer_email", "customer email"],
    "qty": ["qty", "quantity"],
    "currency": ["currency"],
    "channel_order_date": ["channel_order_date", "channel order date"],
    "order_date": ["order_date", "order date"],
    "delivered_date": ["delivered_date", "delivered date", "delivery_date", "delivery date"],
    "rts_date": ["rts_date", "rts date"],
}

# Logical fields a column mapping must provide before orders can be built
REQUIRED_MAPPING_FIELDS = ["supplier_name", "awb_no", "product_name", "status"]


# =============================================================================
# PRICE LISTS: logical field -> accepted headers (first non-empty wins)
# =============================================================================
PRICE_LIST_HEADERS = {
    "supplier_name": ["Supplier Name", "supplier_name", "SupplierName"],
    "product_name": ["Product Name", "product_name", "ProductName"],
    "price_before_gst": ["Price Before GST (INR)", "price_before_gst", "PriceBeforeGST"],
    "gst_rate": ["GST Rate (%)", "gst_rate", "GSTRate"],
    "price_after_gst": ["Price After GST (INR)", "price_after_gst", "PriceAfterGST"],
    "hsn": ["HSN Code", "hsn_code", "HSN"],
    "currency": ["Currency", "currency"],
    "effective_from": ["Effective From (YYYY-MM-DD)", "effective_from"],
    "effective_to": ["Effective To (YYYY-MM-DD)", "effective_to"],
}

# Header row of the bulk-upload template for unpriced products
PRICE_TEMPLATE_HEADERS = [
    "Supplier Name",
    "Product Name",
    "Price Before GST (INR)",
    "GST Rate (%)",
    "Price After GST (INR)",
    "HSN Code",
    "Currency",
    "Effective From (YYYY-MM-DD)",
    "Effective To (YYYY-MM-DD)",
]


# =============================================================================
# REPORTS: engine column -> report header
# =============================================================================
SUPPLIER_SUMMARY_MAPPING = {
    "supplier_id": "Supplier ID",
    "supplier_name": "Supplier Name",
    "currency": "Currency",
    "total_orders": "Total Orders",
    "delivered_orders": "Delivered Orders",
    "rts_orders": "RTS/RTO Orders",
    "total_amount": "Total Amount",
}

PAYOUT_SHEET_MAPPING = {
    "awb_no": "AWB No",
    "supplier_name": "Supplier Name",
    "courier": "Courier",
    "hsn": "HSN",
    "product_name": "Product Name",
    "qty": "Qty",
    "unit_price": "Product Price",
    "delivered_date": "Delivered Date",
    "status": "Status",
}

CANCELLED_ORDERS_MAPPING = {
    "awb_no": "AWB No",
    "supplier_name": "Supplier Name",
    "product_name": "Product Name",
    "qty": "Qty",
    "status": "Status",
    "channel_order_date": "Channel Order Date",
    "order_date": "Order Date",
}

RECONCILIATION_LOG_MAPPING = {
    "awb_no": "AWB No",
    "order_id": "Order ID",
    "previous_status": "Previous Status",
    "new_status": "New Status",
    "impact": "Impact",
    "note": "Note",
    "timestamp": "Timestamp",
}

EXCEPTIONS_MAPPING = {
    "row_index": "Row",
    "type": "Exception Type",
    "description": "Description",
    "order_id": "Order ID",
}

LINE_DETAILS_MAPPING = {
    "id": "Order ID",
    "awb_no": "AWB No",
    "supplier_name": "Supplier Name",
    "product_name": "Product Name",
    "courier": "Courier",
    "qty": "Qty",
    "currency": "Currency",
    "status": "Status",
    "order_account": "Order Account",
    "channel_order_date": "Channel Order Date",
    "order_date": "Order Date",
    "delivered_date": "Delivered Date",
    "rts_date": "RTS Date",
    "unit_price": "Unit Price",
    "line_amount": "Line Amount",
    "hsn": "HSN",
    "basis_date": "Basis Date",
}

# Report name -> (output file stem, header mapping)
REPORT_EXPORTS = {
    "supplier_payout_summary": ("supplier_payout_summary", SUPPLIER_SUMMARY_MAPPING),
    "payout_export_sheet": ("payout_export_sheet", PAYOUT_SHEET_MAPPING),
    "cancelled_orders": ("cancelled_orders", CANCELLED_ORDERS_MAPPING),
    "reconciliation_log": ("reconciliation_log", RECONCILIATION_LOG_MAPPING),
    "exceptions": ("exceptions", EXCEPTIONS_MAPPING),
    "line_details": ("line_details", LINE_DETAILS_MAPPING),
}


# =============================================================================
# GST INVOICES
# =============================================================================
GST_INVOICE_ITEMS_MAPPING = {
    "product_name": "Product Name",
    "hsn": "HSN Code",
    "quantity": "Qty",
    "unit_price": "Unit Price (Before GST)",
    "gst_rate": "GST Rate (%)",
    "amount": "Amount (Before GST)",
    "gst_amount": "GST Amount",
    "total_amount": "Total Amount",
}

GST_INVOICE_HEADER_MAPPING = {
    "invoice_number": "Invoice Number",
    "invoice_date": "Invoice Date",
    "supplier_name": "Supplier Name",
    "supplier_trade_name": "Trade Name",
    "supplier_gstin": "GSTIN",
    "supplier_address": "Address",
    "supplier_ship_to_address": "Ship To Address",
    "place_of_supply": "Place of Supply",
    "date_from": "Period From",
    "date_to": "Period To",
    "total_amount_before_gst": "Total Before GST",
    "total_gst_amount": "Total GST",
    "total_amount_after_gst": "Total After GST",
}


# =============================================================================
# VALIDATION: Required columns for each intermediate file
# =============================================================================
REQUIRED_COLUMNS = {
    "orders": ["id", "awb_no", "supplier_id", "product_name", "qty", "status"],
    "suppliers": ["id", "name"],
    "price_entries": ["supplier_id", "product_name", "price", "effective_from"],
    "payout_calculations": ["order_id", "supplier_name", "qty", "unit_price", "line_amount", "currency"],
}
