"""
API Endpoints
=============
Endpoint modules included by the main router.
"""
