"""
Reports Module

Reportes y dashboard sobre las tablas de los otros módulos. Este módulo NO
crea tablas: todo sale de consultas agregadas con filtro de tenant.

Architecture Pattern: Service Layer
- routers/ -> endpoints FastAPI con validación de fechas y exportación CSV
- services/ -> consultas y agregaciones
- schemas/ -> respuestas Pydantic
- utils/ -> exportación CSV
"""

from .routers import reports_router, dashboard_router

__all__ = ["reports_router", "dashboard_router"]
