"""
POS Modules - domain modules built on the kernel.

- catalog: vendor and product tables read by purchasing
- inventory: stock counter writes with an adjustment log
- purchasing: purchase order lifecycle, receiving and reorder suggestions
"""
