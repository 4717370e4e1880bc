"""
Módulo de Facturación (Invoices)

- Facturas con items JSON, impuesto y descuento (porcentaje o fijo)
- Numeración INV-YYYYMM-NNNN por tenant
- Estado derivado de los pagos: partial, paid y overdue por vencimiento
- Pagos registrados en `payments` con sincronización del saldo del cliente
- Consulta pública por `payment_token` sin autenticación

Roles:
- owner/admin/manager: crear, editar, cancelar, registrar pagos
- staff: solo lectura
"""
