"""simjobs command line (typer + rich)."""
