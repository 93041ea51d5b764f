#!/usr/bin/env python3
"""
Basic Discovery Example
=======================

Scans a page, prints what is visible, then scrolls until the footer link
"More information..." comes into view.

Usage:
    python examples/basic_discovery.py
"""

import logging

from resight import PageSession, ScrollExhausted, ViewportPoint, below
from resight.core.driver_factory import create_driver
from resight.layers.action.finders import text_contains


def main():
    logging.basicConfig(level=logging.INFO)

    driver = create_driver(headless=True)
    try:
        driver.get("https://example.com")
        session = PageSession.from_driver(driver)

        snapshot = session.scan()
        print(f"Snapshot v{snapshot.version}: {len(snapshot)} visible elements")
        for element in snapshot:
            print(f"   {element}")

        try:
            found = session.search_with_scroll(below(ViewportPoint(0, 0), text_contains("more information")))
            print(f"\nFound: {found[0]}")
        except ScrollExhausted as e:
            print(f"\nNot found after {e.attempts} attempts:\n{e}")
    finally:
        driver.quit()


if __name__ == "__main__":
    main()
