"""HTTP 边界适配层."""
