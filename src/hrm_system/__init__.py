"""HRM system package.

Organised by feature modules (leave, payroll, employees, ...) with a thin
Flask controller layer over service/repository layers.
"""
