"""
The CONTROLLER layer runs the topology stages against a geometry adapter and
exports the resulting patches.
"""
