"""Workbot date-expression resolution and plan-validation engine."""
