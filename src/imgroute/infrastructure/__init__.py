"""Infrastructure layer: the key-value table and the entity stores over it.

``database`` knows nothing about entities; it stores JSON payloads
under string keys. ``repositories`` bridges the table and the domain
models. Neither imports from services, commands, or output.
"""
