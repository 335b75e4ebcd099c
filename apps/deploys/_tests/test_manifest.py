"""Tests for ManifestMutator."""

import yaml
from django.test import SimpleTestCase

from apps.deploys._tests.factories import VALUES_YAML
from apps.deploys.manifest import ManifestMutator


class ManifestMutatorTests(SimpleTestCase):
    def setUp(self):
        self.mutator = ManifestMutator("image.tag")

    def test_rewrites_only_the_tag_line(self):
        mutation = self.mutator.apply(VALUES_YAML, "abc1234")

        self.assertFalse(mutation.has_errors)
        before = VALUES_YAML.decode().splitlines()
        after = mutation.mutated_document.decode().splitlines()
        self.assertEqual(len(before), len(after))
        diff = [i for i, (a, b) in enumerate(zip(before, after)) if a != b]
        self.assertEqual(diff, [4])
        self.assertEqual(after[4], '  tag: "abc1234"  # managed by deploy-bot')
        self.assertEqual(mutation.message, "`image.tag` `0000000` → `abc1234`")

    def test_nested_field_with_same_leaf_is_untouched(self):
        mutation = self.mutator.apply(VALUES_YAML, "abc1234")

        parsed = yaml.safe_load(mutation.mutated_document)
        self.assertEqual(parsed["worker"]["image"]["tag"], "keep-me")

    def test_unquoted_value_gets_quoted(self):
        mutation = self.mutator.apply(b"image:\n  tag: latest\n", "1234567")

        self.assertEqual(mutation.mutated_document, b'image:\n  tag: "1234567"\n')
        self.assertEqual(yaml.safe_load(mutation.mutated_document)["image"]["tag"], "1234567")

    def test_single_quotes_are_kept(self):
        mutation = self.mutator.apply(b"image:\n  tag: 'old'\n", "abc1234")

        self.assertEqual(mutation.mutated_document, b"image:\n  tag: 'abc1234'\n")

    def test_empty_value_is_filled(self):
        mutation = self.mutator.apply(b"image:\n  tag:\n  pullPolicy: Always\n", "abc1234")

        self.assertFalse(mutation.has_errors)
        self.assertEqual(yaml.safe_load(mutation.mutated_document)["image"]["tag"], "abc1234")

    def test_crlf_line_endings_survive(self):
        mutation = self.mutator.apply(b"image:\r\n  tag: old\r\n", "abc1234")

        self.assertEqual(mutation.mutated_document, b'image:\r\n  tag: "abc1234"\r\n')

    def test_missing_field(self):
        mutation = self.mutator.apply(b"replicaCount: 2\n", "abc1234")

        self.assertTrue(mutation.has_errors)
        self.assertEqual(mutation.error, "`image.tag` not found in manifest")
        self.assertEqual(mutation.mutated_document, b"")

    def test_field_is_a_mapping(self):
        mutation = self.mutator.apply(b"image:\n  tag:\n    name: x\n", "abc1234")

        self.assertEqual(mutation.error, "`image.tag` is not a scalar value")

    def test_flow_mapping_is_rejected(self):
        mutation = self.mutator.apply(b"image: {tag: old}\n", "abc1234")

        self.assertEqual(mutation.error, "`image.tag` is not written as a block mapping entry")

    def test_invalid_yaml(self):
        mutation = self.mutator.apply(b"image: [unclosed\n", "abc1234")

        self.assertTrue(mutation.error.startswith("manifest is not valid YAML"))

    def test_invalid_utf8(self):
        mutation = self.mutator.apply(b"\xff\xfe", "abc1234")

        self.assertEqual(mutation.error, "manifest is not valid UTF-8")

    def test_custom_field_path(self):
        mutator = ManifestMutator("app.image.version")
        document = b"app:\n  image:\n    version: v1\n"

        mutation = mutator.apply(document, "abc1234")

        self.assertEqual(yaml.safe_load(mutation.mutated_document)["app"]["image"]["version"], "abc1234")
        self.assertIn("`app.image.version`", mutation.message)
