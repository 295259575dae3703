"""
authgate.api.routers

Router modules mounted by `authgate.api.app.create_app`.
"""
