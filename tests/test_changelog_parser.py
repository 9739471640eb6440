from __future__ import annotations

import unittest
from datetime import date

from release_notifier.changelog_parser import ChangelogParser, parse_releases, split_version_tags
from release_notifier.errors import ChangelogParseError

CHANGELOG = """\
* **stray:** bullet before any release ([0000000](https://github.com/acme/shop/commit/0000000))

## [1.2.0](https://github.com/acme/shop/compare/v1.1.0...v1.2.0) (2024-03-10)


### Features

* **api:** add order export PROJ-12 ([abc1234](https://github.com/acme/shop/commit/abc1234def))
* **api:** add order export PROJ-12 ([def5678](https://github.com/acme/shop/commit/def5678abc))
* support dark mode ([1234567](https://github.com/acme/shop/commit/1234567))


### Bug Fixes

* **cart:** fix rounding ([fedcba9](https://github.com/acme/shop/commit/fedcba9))
* this line is malformed

## [1.1.0](https://github.com/acme/shop/compare/v1.0.0...v1.1.0) (2024-02-01)

### Miscellaneous Chores

* **deps:** bump requests ([aaaaaaa](https://github.com/acme/shop/commit/aaaaaaa))
"""


class ParseReleasesTest(unittest.TestCase):
    def test_parses_releases_in_order(self) -> None:
        releases = parse_releases(CHANGELOG)

        self.assertEqual([r.version for r in releases], ["1.2.0", "1.1.0"])
        self.assertEqual(releases[0].previous_version_tag, "v1.1.0")
        self.assertEqual(releases[0].version_tag, "v1.2.0")
        self.assertEqual(releases[0].release_date, date(2024, 3, 10))
        self.assertEqual(releases[1].previous_version_tag, "v1.0.0")
        self.assertEqual(releases[1].version_tag, "v1.1.0")

    def test_collects_features_and_bugfixes(self) -> None:
        release = parse_releases(CHANGELOG)[0]

        self.assertEqual(len(release.features), 2)
        export, dark_mode = release.features
        self.assertEqual(export.component, "api")
        self.assertEqual(export.message, "add order export PROJ-12")
        self.assertEqual(export.change_url, "https://github.com/acme/shop/commit/abc1234def")
        self.assertEqual(export.ticket_ref, "PROJ-12")
        self.assertIsNone(export.author)
        self.assertEqual(dark_mode.component, "general")
        self.assertEqual(dark_mode.message, "support dark mode")
        self.assertIsNone(dark_mode.ticket_ref)

        self.assertEqual([(b.component, b.message) for b in release.bugfixes], [("cart", "fix rounding")])

    def test_duplicate_change_is_kept_once(self) -> None:
        text = """\
### [2.0.0](https://github.com/acme/shop/compare/v1.9.0...v2.0.0) (2024-05-01)
### Bug Fixes
* **ui:** fix flicker ([1111111](https://github.com/acme/shop/commit/1111111))
* **ui:** fix flicker ([2222222](https://github.com/acme/shop/commit/2222222))
* **api:** fix flicker ([3333333](https://github.com/acme/shop/commit/3333333))
"""
        release = parse_releases(text)[0]
        self.assertEqual([(b.component, b.message) for b in release.bugfixes], [("ui", "fix flicker"), ("api", "fix flicker")])
        self.assertEqual(release.bugfixes[0].change_url, "https://github.com/acme/shop/commit/1111111")

    def test_unknown_section_stops_collection(self) -> None:
        release = parse_releases(CHANGELOG)[1]
        self.assertEqual(release.features, [])
        self.assertEqual(release.bugfixes, [])

    def test_counts_dropped_lines(self) -> None:
        parser = ChangelogParser()
        parser.parse(CHANGELOG)
        # Bullets outside a known section are ignored, not dropped.
        self.assertEqual(parser.dropped_lines, 1)

    def test_no_release_header_yields_empty_list(self) -> None:
        self.assertEqual(parse_releases("# Changelog\n\n* something\n"), [])
        self.assertEqual(parse_releases(""), [])

    def test_header_without_bullets(self) -> None:
        releases = parse_releases("## [0.1.0](https://github.com/acme/shop/compare/v0.0.1...v0.1.0) (2023-12-31)\n")
        self.assertEqual(len(releases), 1)
        self.assertEqual(releases[0].features, [])
        self.assertEqual(releases[0].bugfixes, [])

    def test_invalid_release_date_is_rejected(self) -> None:
        with self.assertRaises(ChangelogParseError):
            parse_releases("## [1.0.0](https://github.com/acme/shop/compare/v0.9.0...v1.0.0) (2024-13-45)\n")


class SplitVersionTagsTest(unittest.TestCase):
    def test_compare_url(self) -> None:
        self.assertEqual(
            split_version_tags("https://github.com/acme/shop/compare/v1.0.0...v1.1.0"),
            ("v1.0.0", "v1.1.0"),
        )

    def test_non_compare_url(self) -> None:
        self.assertEqual(split_version_tags("https://github.com/acme/shop/releases/tag/v1.1.0"), (None, None))


if __name__ == "__main__":
    unittest.main()
