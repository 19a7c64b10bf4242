"""
Tests for classification and pattern-based field extraction.
"""

import pytest

from invoice_pipeline.extraction import (
    DocumentClassifier,
    DocumentType,
    FieldExtractor,
    STANDARD_INVOICE_RULES,
)
from invoice_pipeline.extraction.patterns import PURCHASE_ORDER_RULES, RECEIPT_RULES
from invoice_pipeline.postprocessor import FieldKind, FieldValidator


class TestDocumentClassifier:
    """Tests for the keyword classifier."""

    def setup_method(self):
        self.classifier = DocumentClassifier()

    def test_no_markers_is_standard_invoice(self):
        assert self.classifier.classify("hello world") is DocumentType.STANDARD_INVOICE

    def test_empty_text_is_standard_invoice(self):
        assert self.classifier.classify("") is DocumentType.STANDARD_INVOICE

    @pytest.mark.parametrize("text, expected", [
        ("PURCHASE ORDER\nPO Number: 4521", DocumentType.PURCHASE_ORDER),
        ("Service Agreement between A and B", DocumentType.CONTRACT),
        ("Monthly Bank Statement", DocumentType.BANK_STATEMENT),
        ("Your account balance is", DocumentType.BANK_STATEMENT),
        ("CORNER SHOP\nSales Receipt", DocumentType.RECEIPT),
    ])
    def test_markers(self, text, expected):
        assert self.classifier.classify(text) is expected

    def test_receipt_mentioning_invoice_is_invoice(self):
        assert self.classifier.classify("Invoice and receipt") is DocumentType.STANDARD_INVOICE

    def test_purchase_order_beats_contract(self):
        text = "Purchase Order issued under the framework agreement"
        assert self.classifier.classify(text) is DocumentType.PURCHASE_ORDER

    def test_deterministic(self):
        text = "Receipt #991 Total 12.00"
        assert self.classifier.classify(text) is self.classifier.classify(text)


class TestFieldExtractor:
    """Tests for the Standard Invoice rules."""

    def setup_method(self):
        self.extractor = FieldExtractor()

    def test_basic_invoice(self):
        text = "Invoice #INV-2024-001\nDate: 03/15/2024\nTotal: $1,250.00"
        fields = self.extractor.extract(text)

        assert fields["invoice_number"] == "INV-2024-001"
        assert fields["date"] == "03/15/2024"
        assert fields["total"] == "1250.00"
        assert "subtotal" not in fields
        assert "tax" not in fields

    def test_no_markers_yields_nothing(self):
        assert self.extractor.extract("Hello there, see you at the meeting.") == {}

    def test_empty_text(self):
        assert self.extractor.extract("") == {}

    def test_subtotal_is_not_total(self):
        fields = self.extractor.extract("Subtotal: 100.00\nTotal: 108.00")
        assert fields["subtotal"] == "100.00"
        assert fields["total"] == "108.00"

    @pytest.mark.parametrize("label", ["Sub Total", "Sub-total", "SUB TOTAL", "Sub\tTotal"])
    def test_spaced_subtotal_is_not_total(self, label):
        fields = self.extractor.extract(f"Invoice #INV-2024-001\n{label}: 80.00\nTax: 6.40\nTotal: 86.40")

        assert fields["subtotal"] == "80.00"
        assert fields["tax"] == "6.40"
        assert fields["total"] == "86.40"

    def test_invoice_date_label_is_not_an_identifier(self):
        fields = self.extractor.extract("Invoice Date: 01/02/2024\nInvoice No: 5531")
        assert fields["invoice_number"] == "5531"
        assert fields["date"] == "01/02/2024"

    def test_vendor_label(self):
        fields = self.extractor.extract("Vendor: Acme Supplies Ltd\nTotal: 10.00")
        assert fields["vendor"] == "Acme Supplies Ltd"

    def test_word_date(self):
        fields = self.extractor.extract("Invoice Date: March 15th, 2024")
        assert fields["date"] == "March 15th, 2024"

    def test_invalid_date_rejected(self):
        fields = self.extractor.extract("Date: 13/45/2024")
        assert "date" not in fields

    def test_zero_total_rejected_next_candidate_used(self):
        fields = self.extractor.extract("Total: 0.00\nAmount Due: 42.50")
        assert fields["total"] == "42.50"

    def test_percent_tax_fills_tax_rate_only(self):
        fields = self.extractor.extract("Tax (8.5%): 12.75\nTotal: 162.75")
        assert fields["tax_rate"] == "8.5%"
        assert "tax" not in fields

    def test_tax_amount(self):
        fields = self.extractor.extract("Tax: $45.00\nTotal: 545.00")
        assert fields["tax"] == "45.00"
        assert "tax_rate" not in fields

    def test_first_tax_capture_wins(self):
        fields = self.extractor.extract("Tax: 45.00\nTax Rate: 9%")
        assert fields == {"tax": "45.00"}

    def test_dollar_amount_fallback_for_total(self):
        fields = self.extractor.extract("Please remit $310.25 by Friday")
        assert fields["total"] == "310.25"


class TestRuleSelection:
    """Tests for enhanced-mode rule selection."""

    def setup_method(self):
        self.extractor = FieldExtractor()

    def test_standard_mode_ignores_type(self, premium_policy):
        rules = self.extractor.select_rules(DocumentType.RECEIPT, enhanced=False, policy=premium_policy)
        assert rules == STANDARD_INVOICE_RULES

    def test_enhanced_licensed_type_runs_type_rules_first(self, premium_policy):
        rules = self.extractor.select_rules(DocumentType.RECEIPT, enhanced=True, policy=premium_policy)
        assert rules[:len(RECEIPT_RULES)] == RECEIPT_RULES
        assert rules[len(RECEIPT_RULES):] == STANDARD_INVOICE_RULES

    def test_enhanced_unlicensed_type_falls_back(self, free_policy):
        rules = self.extractor.select_rules(DocumentType.PURCHASE_ORDER, enhanced=True, policy=free_policy)
        assert rules == STANDARD_INVOICE_RULES

    def test_enhanced_without_policy_falls_back(self):
        rules = self.extractor.select_rules(DocumentType.RECEIPT, enhanced=True)
        assert rules == STANDARD_INVOICE_RULES

    def test_purchase_order_fields(self, premium_policy):
        text = "PURCHASE ORDER\nPO Number: PO-7781\nSupplier: Northwind Traders\nDelivery Date: 04/01/2024\nTotal: 900.00"
        rules = self.extractor.select_rules(DocumentType.PURCHASE_ORDER, enhanced=True, policy=premium_policy)
        fields = self.extractor.extract(text, rules)

        assert fields["po_number"] == "PO-7781"
        assert fields["vendor"] == "Northwind Traders"
        assert fields["delivery_date"] == "04/01/2024"
        assert fields["total"] == "900.00"

    def test_receipt_banner_vendor(self, premium_policy):
        text = "CORNER SHOP\nRECEIPT\n05/06/2024\nTOTAL 12.40"
        rules = self.extractor.select_rules(DocumentType.RECEIPT, enhanced=True, policy=premium_policy)
        fields = self.extractor.extract(text, rules)

        assert fields["vendor"] == "CORNER SHOP"
        assert fields["total"] == "12.40"
        assert fields["date"] == "05/06/2024"

    def test_receipt_sub_total_is_not_total(self, premium_policy):
        text = "CORNER SHOP\nRECEIPT\nSub-total 10.00\nTOTAL 12.40"
        rules = self.extractor.select_rules(DocumentType.RECEIPT, enhanced=True, policy=premium_policy)

        assert self.extractor.extract(text, rules)["total"] == "12.40"

    def test_purchase_order_sub_total_is_not_total(self, premium_policy):
        text = "PURCHASE ORDER\nPO Number: PO-7781\nSub Total: 850.00\nTotal: 900.00"
        rules = self.extractor.select_rules(DocumentType.PURCHASE_ORDER, enhanced=True, policy=premium_policy)

        assert self.extractor.extract(text, rules)["total"] == "900.00"

    def test_purchase_order_rules_listed(self):
        assert {rule.field for rule in PURCHASE_ORDER_RULES} == {"po_number", "vendor", "total", "delivery_date"}


class TestFieldValidator:
    """Tests for capture validation."""

    def setup_method(self):
        self.validator = FieldValidator()

    def test_identifier_needs_digit(self):
        assert self.validator.clean(FieldKind.IDENTIFIER, "Date") is None
        assert self.validator.clean(FieldKind.IDENTIFIER, "A-100:") == "A-100"

    def test_amount_must_be_positive(self):
        assert self.validator.clean(FieldKind.AMOUNT, "0") is None
        assert self.validator.clean(FieldKind.AMOUNT, "USD 75") == "75"

    def test_name_length_window(self):
        assert self.validator.clean(FieldKind.NAME, "AB") is None
        assert self.validator.clean(FieldKind.NAME, "Acme Ltd:") == "Acme Ltd"

    def test_clean_tax(self):
        assert self.validator.clean_tax("8 %") == ("tax_rate", "8%")
        assert self.validator.clean_tax("1,045.00") == ("tax", "1045.00")
        assert self.validator.clean_tax("0.00") is None
