"""
Storefront API — Application Package
======================================

Layers:

    ┌─────────────────────────────────────┐
    │        Routes (API Layer)           │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Orchestration/Adapters) │  ← payments, images, stores
    ├─────────────────────────────────────┤
    │        Schemas (Data contracts)     │  ← Pydantic
    ├─────────────────────────────────────┤
    │  External: MongoDB, Stripe, Cloudinary
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
