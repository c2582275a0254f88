"""Internal modules for Toucan SDK.

WARNING: This package contains implementation modules used by ToucanClient.
These are not intended for direct use in application code.

Modules:
    requests - Signed request models and builder
    dispatch - Dispatch jobs and the worker that executes them
    pending - Offline job store and delivery driver
    http - Shared HTTP client configuration
    redaction - Masking of tokens and signatures in log output
    prefs - Device id and notification token storage
    connectivity - Default network probe
    debug - Debug logging switch
"""
