# Services package init
"""
Primegate Backend: Services Layer
=================================

Service Inventory:
    - QRCodeService: record store for QR records (insert, list, get by id)
"""
