"""
sdbaccess.integrations - External Service Integrations
========================================================

Adapters to the attribute store sdbaccess sits on top of:

    - backend: SimpleDB bindings (in-memory, AWS via boto3)
"""
