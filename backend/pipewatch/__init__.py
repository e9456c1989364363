"""Pipewatch — backend for the gas-pipeline survey dashboard."""
