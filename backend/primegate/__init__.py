"""
Primegate Backend: Application Package
======================================

What: QR record service. Stores contact details together with a base64
      QR code image in MongoDB and serves them back over a small JSON API.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │      Services (Record Store)        │  ← insert / list / get
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← Mongo documents + Pydantic
    ├─────────────────────────────────────┤
    │   Database (Connection Manager)     │  ← Motor client lifecycle
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
