# Routes package init
"""
Primegate Backend: API Routes Package
=====================================

Route Inventory:
    - health.py:    GET  /health               (process liveness)
                    GET  /api/status           (server + MongoDB state)
    - qr_codes.py:  POST /api/qrcodes          (store a QR record)
                    GET  /api/qrcodes          (list, images stripped)
                    GET  /api/qrcodes/{id}     (one full record)

Routes stay thin: read the request, resolve the collection through the
ensure-connected dependency, call the service, shape the response.
"""
