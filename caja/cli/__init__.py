"""
caja.cli

CLI de caja: un sub-comando por acción de la UI.
"""
