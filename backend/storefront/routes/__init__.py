"""
Storefront API — Routes Package
=================================

Route Inventory:
    - health.py:   GET  /health, GET /api, GET /api/v1/test
    - payments.py: POST /api/v1/payments, POST /api/v1/payment
    - search.py:   GET  /api/v1/search
    - products.py: GET  /api/v1/product[/{id}], POST /api/v1/product/{id}/image,
                   GET  /api/v1/cat

Routes stay thin: read the request, call a service, return one model.
"""
