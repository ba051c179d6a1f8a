"""Tests for UI element parser."""

from unittest.mock import MagicMock

from relaycli.core.ui_element_parser import UIElementParser


class TestUIElementParser:
    """Tests for UI element parsing from uiautomator dumps."""

    SAMPLE_XML = '''<?xml version="1.0" encoding="UTF-8"?>
<hierarchy rotation="0">
  <node index="0" class="android.widget.FrameLayout" bounds="[0,0][1080,2400]">
    <node index="0" class="android.widget.ListView" bounds="[0,200][1080,2000]"
          scrollable="true">
      <node index="0" class="android.widget.TextView" text="Alice"
            content-desc="Alice" bounds="[0,200][1080,400]" clickable="true" />
    </node>
    <node index="1" class="android.widget.EditText" text=""
          resource-id="com.tencent.mm:id/bkk" bounds="[100,2100][900,2200]"
          clickable="true" />
    <node index="2" class="android.widget.Button" text="发送"
          resource-id="com.tencent.mm:id/bql" bounds="" clickable="true" />
  </node>
</hierarchy>'''

    def test_parse_xml(self):
        """Every node becomes an element, including zero-size ones."""
        parser = UIElementParser()
        elements = parser.parse_xml_string(self.SAMPLE_XML)
        assert len(elements) == 5

    def test_parents_come_before_children(self):
        """Elements are in document order."""
        parser = UIElementParser()
        elements = parser.parse_xml_string(self.SAMPLE_XML)

        classes = [e.short_class for e in elements]
        assert classes == ["FrameLayout", "ListView", "TextView", "EditText", "Button"]

    def test_element_properties(self):
        """Attributes map onto element fields."""
        parser = UIElementParser()
        elements = parser.parse_xml_string(self.SAMPLE_XML)

        contact = elements[2]
        assert contact.text == "Alice"
        assert contact.content_desc == "Alice"
        assert contact.clickable is True
        assert contact.bounds == (0, 200, 1080, 400)
        assert elements[1].scrollable is True

    def test_edit_text_is_editable(self):
        """EditText classes are marked editable."""
        parser = UIElementParser()
        elements = parser.parse_xml_string(self.SAMPLE_XML)

        editable = [e for e in elements if e.editable]
        assert len(editable) == 1
        assert editable[0].resource_id == "com.tencent.mm:id/bkk"

    def test_missing_bounds_default_to_zero(self):
        """Unparseable bounds become (0, 0, 0, 0)."""
        parser = UIElementParser()
        elements = parser.parse_xml_string(self.SAMPLE_XML)
        assert elements[4].bounds == (0, 0, 0, 0)

    def test_attaches_actions_backend(self):
        """Parsed elements forward primitives to the backend."""
        actions = MagicMock()
        parser = UIElementParser(actions=actions)
        elements = parser.parse_xml_string(self.SAMPLE_XML)

        elements[3].set_text("hello")

        actions.set_text.assert_called_once_with(elements[3], "hello")

    def test_parse_xml_file(self, tmp_path):
        """Files parse the same as strings."""
        path = tmp_path / "dump.xml"
        path.write_text(self.SAMPLE_XML, encoding="utf-8")

        elements = UIElementParser().parse_xml_file(path)

        assert elements[4].text == "发送"
