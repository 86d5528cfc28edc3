"""
Storefront API — Services Layer
=================================

Service Inventory:
    - PaymentGateway (abstract) / StripeGateway: payment processor adapter
    - PaymentService: customer → ephemeral key → payment intent orchestration
    - ProductStore / CategoryStore: MongoDB collection adapters
    - ImageService: product image validation and Cloudinary upload

Services receive their collaborators through constructors and are built once
at startup (see storefront.dependencies).
"""
