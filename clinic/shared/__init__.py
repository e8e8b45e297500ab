"""Cross-domain helpers: errors, response envelope, validation, pagination, display IDs"""
