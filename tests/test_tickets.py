from __future__ import annotations

import unittest

from release_notifier.tickets import extract_ticket, link_ticket


class ExtractTicketTest(unittest.TestCase):
    def test_returns_first_ticket_only(self) -> None:
        self.assertEqual(extract_ticket("Fixes PROJ-99 and OPS-1 crash"), "PROJ-99")

    def test_requires_two_uppercase_letters(self) -> None:
        self.assertIsNone(extract_ticket("see A-12 or proj-12"))
        self.assertEqual(extract_ticket("see AB-12"), "AB-12")

    def test_no_ticket(self) -> None:
        self.assertIsNone(extract_ticket("plain message"))
        self.assertIsNone(extract_ticket(""))


class LinkTicketTest(unittest.TestCase):
    def test_wraps_ticket_in_tracker_link(self) -> None:
        self.assertEqual(
            link_ticket("Fixes PROJ-99 crash", "PROJ-99", "https://jira.example.com/"),
            "Fixes <https://jira.example.com/browse/PROJ-99|PROJ-99> crash",
        )

    def test_passes_through_without_base_url(self) -> None:
        self.assertEqual(link_ticket("Fixes PROJ-99 crash", "PROJ-99", None), "Fixes PROJ-99 crash")
        self.assertEqual(link_ticket("Fixes PROJ-99 crash", "PROJ-99", ""), "Fixes PROJ-99 crash")

    def test_passes_through_without_ticket(self) -> None:
        self.assertEqual(link_ticket("No ticket", None, "https://jira.example.com"), "No ticket")


if __name__ == "__main__":
    unittest.main()
