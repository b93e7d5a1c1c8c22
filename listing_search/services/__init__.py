"""Services for the listing search API"""
