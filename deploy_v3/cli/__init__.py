"""Command-line interface for the deployment tool."""
