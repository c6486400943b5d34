import unittest

import support  # noqa: F401

from interview_pipeline.services.method_inference import infer_method  # noqa: E402


class InferMethodTests(unittest.TestCase):
    def test_phone_wins_over_any_link(self) -> None:
        self.assertEqual(infer_method("phone", None), "Phone")
        self.assertEqual(infer_method("phone", "https://zoom.us/j/123"), "Phone")
        self.assertEqual(infer_method("phone", "::garbage::"), "Phone")

    def test_missing_link_falls_back(self) -> None:
        self.assertEqual(infer_method(None, None), "Link")
        self.assertEqual(infer_method("link", ""), "Link")

    def test_zoom_in_any_form(self) -> None:
        for link in (
            "https://zoom.us/j/123",
            "https://www.zoom.us/j/123",
            "HTTPS://US02WEB.ZOOM.US/j/123?pwd=x",
            "zoom.us/j/123",
            "www.Zoom.us/j/1",
        ):
            with self.subTest(link=link):
                self.assertEqual(infer_method(None, link), "Zoom")

    def test_known_providers(self) -> None:
        cases = {
            "https://teams.microsoft.com/l/meetup-join/abc": "Teams",
            "https://meet.google.com/abc-defg-hij": "Google Meet",
            "https://acme.webex.com/meet/jane": "Webex",
            "https://join.skype.com/abc": "Skype",
            "https://bluejeans.com/123": "BlueJeans",
            "https://whereby.com/acme": "Whereby",
            "https://meet.jit.si/AcmeInterview": "Jitsi",
            "https://global.gotomeeting.com/join/123": "GoToMeeting",
            "https://chime.aws/1234567890": "Amazon Chime",
            "https://app.slack.com/huddle/T1/C1": "Slack",
            "https://discord.gg/abc": "Discord",
            "https://chat.whatsapp.com/abc": "WhatsApp",
            "https://8x8.vc/acme/jane": "8x8",
            "https://t.me/acme_hr": "Telegram",
            "https://signal.org/#join": "Signal",
            "https://acme.zoomgov.com/j/1": "ZoomGov",
        }
        for link, expected in cases.items():
            with self.subTest(link=link):
                self.assertEqual(infer_method("link", link), expected)

    def test_table_order_breaks_ties(self) -> None:
        # Matches both the Zoom and Teams signatures; Zoom comes first.
        self.assertEqual(infer_method(None, "https://zoom.us/redirect?to=teams.microsoft.com"), "Zoom")

    def test_unknown_or_malformed_links_degrade(self) -> None:
        for link in ("https://example.com/call", "not a url at all", "http://[::1", "::::"):
            with self.subTest(link=link):
                self.assertEqual(infer_method(None, link), "Link")


if __name__ == "__main__":
    unittest.main()
