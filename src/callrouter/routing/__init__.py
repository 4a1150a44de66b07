"""
Routing table: inbound provider number -> office record.

Keep import side-effect free.
"""
