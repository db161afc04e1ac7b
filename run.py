#!/usr/bin/env python3
"""Run the dashboard from a source checkout without installing it.

Usage:
    python run.py [--input data/activities.csv] [--type Run] [--viewport S,W,N,E]
"""
import sys

from strava_dashboard.main import main

if __name__ == "__main__":
    sys.exit(main())
