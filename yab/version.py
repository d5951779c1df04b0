"""Release version of yab."""

VERSION = "0.22.0-dev"