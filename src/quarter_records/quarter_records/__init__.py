"""Quarter Records package.

Academic records workflow for a grading period: grade entry, attendance,
feedback and the quarter package approval lifecycle. Organized by feature
modules with a thin Flask controller layer over service/repository layers.
"""
