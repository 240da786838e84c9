#!/usr/bin/env python3

"""Domain models for debug information and calibration images."""
