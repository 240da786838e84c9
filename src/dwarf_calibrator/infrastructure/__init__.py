#!/usr/bin/env python3

"""Infrastructure: configuration, logging and object file access."""
