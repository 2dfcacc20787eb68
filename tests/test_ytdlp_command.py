import os
import tempfile
import unittest
from unittest.mock import patch

from yt_dlp.utils import DownloadError

from download import ytdlp_command


class _FakeYoutubeDL:
    instances = []

    def __init__(self, opts, *, write=True, error=None):
        self.opts = opts
        self.write = write
        self.error = error
        self.urls = []
        _FakeYoutubeDL.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def download(self, urls):
        self.urls.extend(urls)
        if self.error is not None:
            raise self.error
        if self.write:
            with open(self.opts["outtmpl"].replace("%%", "%"), "wb") as handle:
                handle.write(b"audio")
        return 0


class YtdlpDownloadOptsTests(unittest.TestCase):
    def test_opts_target_exact_output_path(self):
        opts = ytdlp_command.build_download_opts("/tmp/work/abc.tmp", "m4a")

        self.assertEqual(opts["outtmpl"], "/tmp/work/abc.tmp")
        self.assertEqual(opts["format"], "bestaudio[ext=m4a]/bestaudio/best")
        self.assertTrue(opts["noplaylist"])
        self.assertTrue(opts["continuedl"])
        self.assertFalse(opts["cachedir"])
        self.assertNotIn("postprocessors", opts)

    def test_percent_signs_are_escaped(self):
        opts = ytdlp_command.build_download_opts("/tmp/100%/abc.tmp", "m4a")

        self.assertEqual(opts["outtmpl"], "/tmp/100%%/abc.tmp")

    def test_blank_format_falls_back_to_best_audio(self):
        opts = ytdlp_command.build_download_opts("/tmp/abc.tmp", "  ")

        self.assertEqual(opts["format"], "bestaudio/best")


class YtdlpDownloadAudioTests(unittest.TestCase):
    def setUp(self):
        _FakeYoutubeDL.instances = []
        self._tmp = tempfile.TemporaryDirectory()
        self.output_path = os.path.join(self._tmp.name, "abc.tmp")

    def tearDown(self):
        self._tmp.cleanup()

    def test_download_success_writes_output(self):
        with patch.object(ytdlp_command, "YoutubeDL", _FakeYoutubeDL):
            ok = ytdlp_command.download_audio("https://youtu.be/x1", self.output_path, "m4a")

        self.assertTrue(ok)
        self.assertTrue(os.path.isfile(self.output_path))
        self.assertEqual(_FakeYoutubeDL.instances[0].urls, ["https://youtu.be/x1"])

    def test_download_error_returns_false(self):
        def _failing(opts):
            return _FakeYoutubeDL(opts, error=DownloadError("video unavailable"))

        with patch.object(ytdlp_command, "YoutubeDL", _failing):
            ok = ytdlp_command.download_audio("https://youtu.be/x1", self.output_path, "m4a")

        self.assertFalse(ok)
        self.assertFalse(os.path.exists(self.output_path))

    def test_missing_output_after_download_returns_false(self):
        def _silent(opts):
            return _FakeYoutubeDL(opts, write=False)

        with patch.object(ytdlp_command, "YoutubeDL", _silent):
            ok = ytdlp_command.download_audio("https://youtu.be/x1", self.output_path, "m4a")

        self.assertFalse(ok)

    def test_main_exit_codes(self):
        with patch.object(ytdlp_command, "download_audio", return_value=True) as download:
            self.assertEqual(ytdlp_command.main(["https://youtu.be/x1", self.output_path, "m4a"]), 0)
        download.assert_called_once_with("https://youtu.be/x1", self.output_path, "m4a")

        with patch.object(ytdlp_command, "download_audio", return_value=False):
            self.assertEqual(ytdlp_command.main(["https://youtu.be/x1", self.output_path, "m4a"]), 1)


if __name__ == "__main__":
    unittest.main()
