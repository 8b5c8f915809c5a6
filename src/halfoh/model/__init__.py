"""
The MODEL layer contains pure data structures: points, options, errors and the
results of the topology stages. It has NO knowledge of the geometry host.
"""
