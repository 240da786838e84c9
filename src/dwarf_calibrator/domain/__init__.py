#!/usr/bin/env python3

"""Domain layer: models, exceptions and services."""
