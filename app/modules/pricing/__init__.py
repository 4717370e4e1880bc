"""
Plantillas de precios para trabajos de imprenta.

Una plantilla fija precio base, precio por unidad, cargo de preparación,
descuentos por volumen y opciones adicionales. `POST /pricing/calculate`
busca la primera plantilla activa que coincide con el trabajo y devuelve el
desglose del precio.
"""
