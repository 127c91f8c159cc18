"""Tests for VCF body parsing."""

import io

import pytest

from vcf_table.config import ReaderConfig
from vcf_table.errors import CancellationError, FormatError
from vcf_table.hooks import CancellationToken
from vcf_table.models import FileStats
from vcf_table.parser import coerce_field, read_body, read_vcf
from vcf_table.scanner import scan_file
from vcf_table.table import BufferStrategy

HEADER = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tS1\n"


def _parse_text(write_vcf_text, text, **kwargs):
    path = write_vcf_text(text)
    return read_body(path, scan_file(path), **kwargs)


class TestReadBody:
    """Test read_body on the synthetic basic VCF."""

    def test_shapes(self, basic_vcf_file):
        stats = scan_file(basic_vcf_file)

        fix, gt = read_body(basic_vcf_file, stats)

        assert fix.n_rows == stats.variant_count
        assert gt.n_rows == stats.variant_count
        assert gt.n_cols == stats.column_count - 8

    def test_column_names_from_header(self, basic_vcf_file):
        fix, gt = read_body(basic_vcf_file, scan_file(basic_vcf_file))

        assert fix.column_names == ("CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO")
        assert gt.samples == ("FORMAT", "NA001", "NA002")

    def test_column_kinds(self, basic_vcf_file):
        fix, _ = read_body(basic_vcf_file, scan_file(basic_vcf_file))

        kinds = {c.name: c.kind for c in fix.columns}
        assert kinds["POS"] == "integer"
        assert kinds["QUAL"] == "float"
        assert kinds["CHROM"] == "string"

    def test_typed_values(self, basic_vcf_file):
        fix, _ = read_body(basic_vcf_file, scan_file(basic_vcf_file))

        assert fix["POS"].values == (10, 50, 150, 250, 280)
        assert fix["QUAL"].values == (50.0, 12.5, None, 99.0, 7.0)
        assert fix["ID"].values == ("rs10", None, None, None, None)
        assert fix["FILTER"].values == ("PASS", "q10", "PASS", None, "PASS")
        assert fix["ALT"][2] == "A,C"
        assert fix["INFO"][2] == "DP=40"

    def test_genotypes_verbatim(self, basic_vcf_file):
        _, gt = read_body(basic_vcf_file, scan_file(basic_vcf_file))

        assert gt.row(0) == ("GT:DP:GQ", "0/1:30:99", "0/0:25:60")
        assert gt.column("NA002")[0] == "0/0:25:60"

    def test_gzip_source(self, basic_vcf_gz_file, basic_vcf_file):
        fix_gz, gt_gz = read_body(basic_vcf_gz_file, scan_file(basic_vcf_gz_file))
        fix, gt = read_body(basic_vcf_file, scan_file(basic_vcf_file))

        assert fix_gz["POS"].values == fix["POS"].values
        assert gt_gz.rows == gt.rows

    def test_growable_strategy_without_stats(self, basic_vcf_file):
        fix, gt = read_body(basic_vcf_file, strategy=BufferStrategy.GROWABLE)

        assert fix.n_rows == 5
        assert gt.n_cols == 3

    def test_presized_requires_stats(self, basic_vcf_file):
        with pytest.raises(ValueError, match="requires FileStats"):
            read_body(basic_vcf_file)

    def test_text_stream_source(self):
        text = HEADER + "chr1\t5\t.\tA\tG\t.\t.\t.\tGT\t0/1\n"

        stats = scan_file(io.StringIO(text))
        fix, gt = read_body(io.StringIO(text), stats)

        assert fix["POS"].values == (5,)
        assert gt.rows == (("GT", "0/1"),)

    def test_eight_columns_give_empty_matrix(self, write_vcf_text):
        text = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\nchr1\t1\t.\tA\tG\t1\tPASS\t.\n"

        fix, gt = _parse_text(write_vcf_text, text)

        assert fix.n_rows == 1
        assert gt.n_cols == 0
        assert gt.row(0) == ()

    def test_custom_first_header_name_stripped_of_marker(self, write_vcf_text):
        text = "#chrom\tpos\tid\tref\talt\tqual\tfilter\tinfo\n"

        fix, _ = _parse_text(write_vcf_text, text)

        assert fix.column_names[0] == "chrom"


class TestNaCoercion:
    """Test that '.' always becomes NA in fixed columns and never in genotypes."""

    def test_all_fixed_na(self, write_vcf_text):
        text = HEADER + ".\t.\t.\t.\t.\t.\t.\t.\t.\t.\n"

        fix, gt = _parse_text(write_vcf_text, text)

        assert all(column[0] is None for column in fix.columns)
        assert gt.row(0) == (".", ".")

    def test_na_chromosome_allowed(self, write_vcf_text):
        text = HEADER + ".\t100\t.\tA\tG\t30\tPASS\t.\tGT\t0/1\n"

        fix, _ = _parse_text(write_vcf_text, text)

        assert fix["CHROM"][0] is None
        assert fix["POS"][0] == 100

    def test_generated_na_fields(self, tmp_path, vcf_generator, synthetic_variant_factory):
        variant = synthetic_variant_factory(alt=None, qual=None, filter=None)
        path = vcf_generator.generate_file(tmp_path / "na.vcf", [variant])

        row = read_vcf(path).fix.row(0)

        assert row["POS"] == 100
        assert row["ALT"] is None
        assert row["QUAL"] is None
        assert row["FILTER"] is None

    def test_coerce_field_kinds(self):
        assert coerce_field("12", "integer", "POS", 1, "") == 12
        assert coerce_field("1e3", "float", "QUAL", 1, "") == 1000.0
        assert coerce_field(".", "float", "QUAL", 1, "") is None
        assert coerce_field("x", "string", "ID", 1, "") == "x"


class TestReadBodyErrors:
    """Test that malformed bodies fail fast with context."""

    def test_non_numeric_pos(self, write_vcf_text):
        text = HEADER + "chr1\tabc\t.\tA\tG\t30\tPASS\t.\tGT\t0/1\n"

        with pytest.raises(FormatError, match="non-integer POS value 'abc'") as exc_info:
            _parse_text(write_vcf_text, text)

        assert exc_info.value.line_number == 2

    def test_pos_with_underscore_separator(self, write_vcf_text):
        text = HEADER + "chr1\t1_000\t.\tA\tG\t30\tPASS\t.\tGT\t0/1\n"

        with pytest.raises(FormatError, match="non-integer POS value '1_000'"):
            _parse_text(write_vcf_text, text)

    def test_qual_with_spaces_and_underscore(self, write_vcf_text):
        text = HEADER + "chr1\t1\t.\tA\tG\t 3_0 \tPASS\t.\tGT\t0/1\n"

        with pytest.raises(FormatError, match="non-numeric QUAL") as exc_info:
            _parse_text(write_vcf_text, text)

        assert exc_info.value.line_number == 2

    @pytest.mark.parametrize("value", ["+5", " 5", "5 ", "1_0", "0x10", "5.0", "١٢"])
    def test_coerce_rejects_loose_integers(self, value):
        with pytest.raises(FormatError, match="non-integer POS"):
            coerce_field(value, "integer", "POS", 1, "")

    @pytest.mark.parametrize("value", ["1_0.5", " 30", "30 ", "1e", "e5", "0x1p3", ""])
    def test_coerce_rejects_loose_floats(self, value):
        with pytest.raises(FormatError, match="non-numeric QUAL"):
            coerce_field(value, "float", "QUAL", 1, "")

    @pytest.mark.parametrize("value,expected", [("-3", -3), ("007", 7)])
    def test_coerce_accepts_plain_integers(self, value, expected):
        assert coerce_field(value, "integer", "POS", 1, "") == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("30", 30.0),
            ("-1.5", -1.5),
            (".5", 0.5),
            ("2.", 2.0),
            ("5e-324", 5e-324),
            ("1E+3", 1000.0),
        ],
    )
    def test_coerce_accepts_plain_floats(self, value, expected):
        assert coerce_field(value, "float", "QUAL", 1, "") == expected

    def test_invalid_utf8_names_line(self, tmp_path):
        path = tmp_path / "latin1.vcf"
        path.write_bytes(
            HEADER.encode() + b"chr1\t1\t.\tA\tG\t30\tPASS\tNOTE=caf\xe9\tGT\t0/1\n"
        )

        with pytest.raises(FormatError, match="invalid UTF-8") as exc_info:
            read_body(path, strategy=BufferStrategy.GROWABLE)

        assert exc_info.value.line_number == 2

    def test_non_numeric_qual(self, write_vcf_text):
        text = HEADER + "chr1\t1\t.\tA\tG\thigh\tPASS\t.\tGT\t0/1\n"

        with pytest.raises(FormatError, match="non-numeric QUAL"):
            _parse_text(write_vcf_text, text)

    def test_missing_field_names_line_number(self, write_vcf_text):
        text = "##a\n" + HEADER + "chr1\t1\t.\tA\tG\t30\tPASS\t.\tGT\n"

        with pytest.raises(FormatError, match="line 3") as exc_info:
            _parse_text(write_vcf_text, text)

        assert exc_info.value.expected == 10
        assert exc_info.value.actual == 9

    def test_surplus_field_strict(self, write_vcf_text):
        text = HEADER + "chr1\t1\t.\tA\tG\t30\tPASS\t.\tGT\t0/1\textra\n"

        with pytest.raises(FormatError, match="too many fields"):
            _parse_text(write_vcf_text, text)

    def test_surplus_field_absorbed_when_lenient(self, write_vcf_text):
        text = HEADER + "chr1\t1\t.\tA\tG\t30\tPASS\t.\tGT\t0/1\textra\n"

        _, gt = _parse_text(write_vcf_text, text, strict=False)

        assert gt.row(0) == ("GT", "0/1\textra")

    def test_row_count_below_scan(self, basic_vcf_file):
        stats = scan_file(basic_vcf_file)
        inflated = FileStats(
            stats.meta_count, stats.header_line, stats.variant_count + 1, stats.column_count
        )

        with pytest.raises(FormatError, match="row count differs") as exc_info:
            read_body(basic_vcf_file, inflated)

        assert exc_info.value.expected == 6
        assert exc_info.value.actual == 5

    def test_row_count_above_scan(self, basic_vcf_file):
        stats = scan_file(basic_vcf_file)
        deflated = FileStats(
            stats.meta_count, stats.header_line, stats.variant_count - 1, stats.column_count
        )

        with pytest.raises(FormatError, match="more variant rows"):
            read_body(basic_vcf_file, deflated)

    def test_row_count_checked_for_growable_with_stats(self, basic_vcf_file):
        stats = scan_file(basic_vcf_file)
        inflated = FileStats(
            stats.meta_count, stats.header_line, stats.variant_count + 2, stats.column_count
        )

        with pytest.raises(FormatError, match="row count differs"):
            read_body(basic_vcf_file, inflated, strategy=BufferStrategy.GROWABLE)

    def test_meta_count_mismatch(self, basic_vcf_file):
        stats = scan_file(basic_vcf_file)
        wrong = FileStats(7, 8, stats.variant_count, stats.column_count)

        with pytest.raises(FormatError, match="meta line count"):
            read_body(basic_vcf_file, wrong)

    def test_header_column_mismatch(self, basic_vcf_file):
        stats = scan_file(basic_vcf_file)
        wrong = FileStats(stats.meta_count, stats.header_line, stats.variant_count, 12)

        with pytest.raises(FormatError, match="header column count"):
            read_body(basic_vcf_file, wrong)

    def test_marker_line_in_body(self, write_vcf_text):
        text = HEADER + "chr1\t1\t.\tA\tG\t30\tPASS\t.\tGT\t0/1\n##late\n"

        with pytest.raises(FormatError, match="marker line after header"):
            read_body(write_vcf_text(text), strategy=BufferStrategy.GROWABLE)

    def test_cancellation_discards_result(self, basic_vcf_file):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(CancellationError):
            read_body(basic_vcf_file, scan_file(basic_vcf_file), cancel=token)


class TestReadVcf:
    """Test the full read convenience wrapper."""

    def test_presized(self, basic_vcf_file, vcf_generator):
        data = read_vcf(basic_vcf_file)

        assert data.stats == scan_file(basic_vcf_file)
        assert data.meta == vcf_generator.meta_lines()
        assert len(data) == 5
        assert data.samples == ("FORMAT", "NA001", "NA002")

    def test_growable_single_pass_matches_presized(self, basic_vcf_file):
        presized = read_vcf(basic_vcf_file)
        growable = read_vcf(
            basic_vcf_file, config=ReaderConfig(strategy=BufferStrategy.GROWABLE)
        )

        assert growable.stats == presized.stats
        assert growable.meta == presized.meta
        assert growable.fix.columns == presized.fix.columns
        assert growable.gt.rows == presized.gt.rows

    def test_header_columns(self, trio_vcf_file):
        data = read_vcf(trio_vcf_file)

        assert data.header_columns == (
            "CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO",
            "FORMAT", "proband", "father", "mother",
        )
