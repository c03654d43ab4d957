"""
Tests for the page header/footer decoration and logo handling
"""

import base64
import io
import unittest
from datetime import datetime
from types import SimpleNamespace
from unittest import mock
from PIL import Image
from reportlab.lib.pagesizes import A4
from models.logo import LogoBytes, LogoUrl
from models.report import ReportMetadata
from services.page_decoration_service import PageDecorationService


def png_bytes():
    buffer = io.BytesIO()
    Image.new('RGB', (8, 8), 'red').save(buffer, 'PNG')
    return buffer.getvalue()


class TrackingBytesIO(io.BytesIO):
    instances = []

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        TrackingBytesIO.instances.append(self)


def drawn_strings(canvas, method):
    return [c.args[-1] for c in getattr(canvas, method).call_args_list]


class TestLogoResolution(unittest.TestCase):

    def test_direct_references(self):
        self.assertEqual(PageDecorationService.resolve_logo(b'abc'), LogoBytes(b'abc'))
        self.assertEqual(PageDecorationService.resolve_logo('/srv/assets/logo.png'), LogoUrl('/srv/assets/logo.png'))
        self.assertEqual(PageDecorationService.resolve_logo('file:///srv/assets/my%20logo.png'),
                         LogoUrl('/srv/assets/my logo.png'))
        self.assertEqual(PageDecorationService.resolve_logo(io.BytesIO(b'xyz')), LogoBytes(b'xyz'))
        self.assertIsNone(PageDecorationService.resolve_logo(None))
        self.assertIsNone(PageDecorationService.resolve_logo('  '))

    def test_data_uri(self):
        data = png_bytes()
        uri = 'data:image/png;base64,' + base64.b64encode(data).decode('ascii')
        self.assertEqual(PageDecorationService.resolve_logo(uri), LogoBytes(data))
        self.assertIsNone(PageDecorationService.resolve_logo('data:image/png;base64,@@not-base64@@'))

    def test_wrapped_references(self):
        wrapped = {'signedUrl': None, 'url': 'a.png', 'src': 'b.png'}
        self.assertEqual(PageDecorationService.resolve_logo(wrapped), LogoUrl('a.png'))
        self.assertEqual(PageDecorationService.resolve_logo(SimpleNamespace(href='c.png')), LogoUrl('c.png'))
        self.assertEqual(PageDecorationService.resolve_logo([{'path': 'd.png'}, 'e.png']), LogoUrl('d.png'))
        self.assertIsNone(PageDecorationService.resolve_logo([]))

    def test_remote_url_is_not_fetched(self):
        """http(s) logos are refused up front and the page renders without them"""
        with self.assertLogs('services.page_decoration_service', level='WARNING'):
            self.assertIsNone(PageDecorationService.resolve_logo('https://cdn.example.com/logo.png'))
        with self.assertLogs('services.page_decoration_service', level='WARNING'):
            self.assertIsNone(PageDecorationService.resolve_logo({'signedUrl': 'http://storage.example.com/l.png'}))

    def test_unsupported_reference_is_omitted(self):
        with self.assertLogs('services.page_decoration_service', level='WARNING'):
            self.assertIsNone(PageDecorationService.resolve_logo(12345))


class TestDrawing(unittest.TestCase):

    def setUp(self):
        self.canvas = mock.MagicMock()
        self.metadata = ReportMetadata(organization_name='Springfield College',
                                       generated_at=datetime(2026, 10, 19, 9, 0))

    def test_header_text(self):
        PageDecorationService.draw_header(self.canvas, self.metadata, page_size=A4)
        self.assertIn('Springfield College', drawn_strings(self.canvas, 'drawString'))
        self.assertIn('School Management System', drawn_strings(self.canvas, 'drawString'))
        self.assertIn('October 19, 2026', drawn_strings(self.canvas, 'drawRightString'))
        self.assertIn('E-Class Software', drawn_strings(self.canvas, 'drawRightString'))
        self.canvas.drawImage.assert_not_called()

    def test_header_default_organization(self):
        PageDecorationService.draw_header(self.canvas, ReportMetadata(), page_size=A4)
        self.assertIn('Organization Name', drawn_strings(self.canvas, 'drawString'))

    def test_footer(self):
        PageDecorationService.draw_footer(self.canvas, 7, 'Springfield College', page_size=A4)
        self.assertIn('Page 7', drawn_strings(self.canvas, 'drawRightString'))
        self.assertIn('Springfield College - School Management System', drawn_strings(self.canvas, 'drawString'))
        self.canvas.line.assert_called_once()

    def test_logo_bytes_handle_closed_after_draw(self):
        TrackingBytesIO.instances = []
        metadata = self.metadata.with_values(logo=png_bytes())
        with mock.patch('services.page_decoration_service.BytesIO', TrackingBytesIO):
            PageDecorationService.draw_header(self.canvas, metadata, page_size=A4)
            PageDecorationService.draw_header(self.canvas, metadata, page_size=A4)
        self.assertEqual(self.canvas.drawImage.call_count, 2)
        self.assertEqual(len(TrackingBytesIO.instances), 2)
        self.assertTrue(all(handle.closed for handle in TrackingBytesIO.instances))

    def test_logo_url_drawn_by_location(self):
        drawn = PageDecorationService.draw_logo(self.canvas, LogoUrl('logo.png'), 10, 10)
        self.assertTrue(drawn)
        self.assertEqual(self.canvas.drawImage.call_args.args[0], 'logo.png')

    def test_broken_logo_is_omitted(self):
        with self.assertLogs('services.page_decoration_service', level='WARNING'):
            drawn = PageDecorationService.draw_logo(self.canvas, LogoBytes(b'not an image'), 10, 10)
        self.assertFalse(drawn)
        # The header still renders without the logo
        PageDecorationService.draw_header(self.canvas, self.metadata.with_values(logo=b'not an image'),
                                          page_size=A4)
        self.assertIn('Springfield College', drawn_strings(self.canvas, 'drawString'))

    def test_remote_logo_url_never_reaches_canvas(self):
        with self.assertLogs('services.page_decoration_service', level='WARNING'):
            drawn = PageDecorationService.draw_logo(self.canvas, LogoUrl('https://cdn.example.com/logo.png'), 0, 0)
        self.assertFalse(drawn)
        self.canvas.drawImage.assert_not_called()

    def test_draw_failure_is_omitted(self):
        self.canvas.drawImage.side_effect = OSError('cannot open resource')
        with self.assertLogs('services.page_decoration_service', level='WARNING'):
            self.assertFalse(PageDecorationService.draw_logo(self.canvas, LogoUrl('missing.png'), 0, 0))


if __name__ == '__main__':
    unittest.main()
