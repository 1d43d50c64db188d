import io

import pandas as pd
import pytest

from wrap_pricing.data.csv_io import (
    QUOTE_COLUMNS,
    QuoteRecord,
    detect_dataset,
    export_dataset,
    import_dataset,
    import_files,
    quotes_frame,
    read_csv,
    write_quotes,
)
from wrap_pricing.engine import Catalog, Selection, compute_price


def csv(text: str) -> pd.DataFrame:
    return read_csv(io.StringIO(text))


class TestExport:
    def test_vehicles(self, sample_catalog):
        df = export_dataset(sample_catalog, 'vehicles')
        assert list(df['Manufacturer']) == ['Ford', 'Dacia']
        assert list(df['Category']) == ['Van', 'Sedan']
        assert list(df['Coverages']) == [2, 1]

    def test_coverages_one_row_per_item(self, sample_catalog):
        df = export_dataset(sample_catalog, 'coverages')
        assert list(df['Coverage']) == ['Full Wrap', 'Partial Wrap', 'Hood']
        assert list(df['Vehicle ID']) == ['van', 'van', 'sedan']

    def test_materials(self, sample_catalog):
        df = export_dataset(sample_catalog, 'materials')
        assert list(df['Material Type']) == ['Print'] * 3 + ['Lamination'] * 2
        assert list(df['Allows White Print']) == ['Yes', 'No', 'No', 'N/A', 'N/A']
        assert df.iloc[2]['Calculation Mode'] == 'Fixed Amount'

    def test_empty_catalog_keeps_headers(self):
        df = export_dataset(Catalog(), 'extra_options')
        assert df.empty
        assert 'Option' in df.columns

    def test_unknown_dataset(self, sample_catalog):
        with pytest.raises(ValueError, match="Unknown dataset"):
            export_dataset(sample_catalog, 'customers')


class TestImport:
    def test_exported_coverages_update_in_place(self, sample_catalog):
        exported = export_dataset(sample_catalog, 'coverages').to_csv(index=False)
        catalog, result = import_dataset(sample_catalog, 'coverages', csv(exported))

        assert (result.success, result.updated, result.errors) == (0, 3, [])
        assert catalog == sample_catalog

    def test_coverages_match_vehicle_by_name(self, sample_catalog):
        catalog, result = import_dataset(sample_catalog, 'coverages', csv(
            "Manufacturer,Model,Coverage,Price\n"
            "dacia,logan,Roof,\"120,5\"\n"
            "Dacia,Logan,Hood,350\n"
        ))
        sedan = catalog.get_vehicle('sedan')

        assert (result.success, result.updated) == (1, 1)
        assert [c.name for c in sedan.coverages] == ['Hood', 'Roof']
        assert sedan.coverages[0].price == 350
        assert sedan.coverages[1].price == 120.5

    def test_bad_rows_are_reported_not_fatal(self, sample_catalog):
        catalog, result = import_dataset(sample_catalog, 'extra_options', csv(
            "Vehicle ID,Option,Price\n"
            "van,Chrome,abc\n"
            "van,Tint,-1\n"
            "bus,Stripes,10\n"
            "van,Stripes,10\n"
        ))
        assert result.success == 1
        assert result.errors == [
            "Row 2: invalid price for extra option 'Chrome'",
            "Row 3: negative price for extra option 'Tint'",
            "Row 4: no vehicle matches extra option 'Stripes'",
        ]
        assert catalog.get_vehicle('van').extra_options[-1].name == 'Stripes'

    def test_categories_skip_existing(self, sample_catalog):
        catalog, result = import_dataset(sample_catalog, 'categories', csv("Category\nvan\nTruck\n\n"))
        assert result.success == 1
        assert result.warnings == ["Category 'van' already exists"]
        assert catalog.get_category_by_name('Truck') is not None

    def test_vehicles_with_unknown_category(self, sample_catalog):
        catalog, result = import_dataset(sample_catalog, 'vehicles', csv(
            "Manufacturer,Model,Category,Production Period\n"
            "Iveco,Daily,Bus,2019-2024\n"
            "Ford,Transit,Van,\n"
            ",Nameless,,\n"
        ))
        daily = catalog.vehicles[-1]

        assert result.success == 1
        assert daily.display_name == 'Iveco Daily'
        assert daily.category_id == ''
        assert daily.production_period == '2019-2024'
        assert len(result.warnings) == 2
        assert result.errors == ["Row 4: manufacturer and model are required"]

    def test_materials_create_and_update(self, sample_catalog):
        catalog, result = import_dataset(sample_catalog, 'materials', csv(
            "Material Type,Name,Calculation Mode,Value,Allows White Print\n"
            "Print,Standard Vinyl,Percentage,12,Yes\n"
            "Lamination,Satin,Fixed Amount,25,N/A\n"
            "Vinyl,Odd,Percentage,5,\n"
            "Print,Broken,sideways,5,\n"
        ))
        standard = catalog.get_print_material('standard')
        satin = catalog.lamination_materials[-1]

        assert (result.success, result.updated) == (1, 1)
        assert standard.value == 12 and standard.allows_white_print
        assert (satin.name, satin.calculation_mode, satin.value) == ('Satin', 'fixed_amount', 25)
        assert len(result.errors) == 2

    def test_original_catalog_is_untouched(self, sample_catalog):
        before = sample_catalog.to_dict()
        import_dataset(sample_catalog, 'categories', csv("Category\nTruck\n"))
        assert sample_catalog.to_dict() == before


class TestImportFiles:
    @pytest.mark.parametrize("filename, dataset", [
        ("vehicle_categories.csv", 'categories'),
        ("Vehicles.CSV", 'vehicles'),
        ("coverages_2024.csv", 'coverages'),
        ("extra_options.csv", 'extra_options'),
        ("materials.csv", 'materials'),
        ("customers.csv", None),
    ])
    def test_detect_dataset(self, filename, dataset):
        assert detect_dataset(filename) == dataset

    def test_files_are_applied_in_order(self, sample_catalog):
        """A vehicle created in one file can receive coverages from the next."""
        catalog, result = import_files(sample_catalog, {
            'vehicles.csv': csv("Manufacturer,Model\nIveco,Daily\n"),
            'coverages.csv': csv("Manufacturer,Model,Coverage,Price\nIveco,Daily,Full Wrap,2100\n"),
            'notes.csv': csv("a\n1\n"),
        })
        daily = catalog.vehicles[-1]

        assert result.success == 2
        assert daily.coverages[0].price == 2100
        assert result.warnings == ["File type of 'notes.csv' not recognised"]


class TestQuotes:
    def test_quote_columns(self, sample_catalog):
        selection = Selection(vehicle_id='van', coverage_id='partial', print_material_id='mesh')
        record = QuoteRecord.from_selection(sample_catalog, selection, compute_price(sample_catalog, selection))

        row = quotes_frame([record]).iloc[0]
        assert list(row.index) == QUOTE_COLUMNS
        assert row['Vehicle'] == 'Ford Transit'
        assert row['Extra Options'] == 0
        assert row['Total'] == 550

    def test_write_xlsx_and_csv(self, sample_catalog, tmp_path):
        selection = Selection(vehicle_id='sedan', coverage_id='hood', print_material_id='mesh')
        quotes = [QuoteRecord.from_selection(sample_catalog, selection, compute_price(sample_catalog, selection))]

        xlsx = write_quotes(quotes, tmp_path / 'out' / 'quotes.xlsx')
        written = pd.read_excel(xlsx, sheet_name='Quotes', engine='openpyxl')
        assert written.loc[0, 'Total'] == 350

        written_csv = pd.read_csv(write_quotes(quotes, tmp_path / 'quotes.csv'))
        assert written_csv.loc[0, 'Coverage'] == 'Hood'


class TestNonFiniteNumbers:
    @pytest.mark.parametrize("price", ["nan", "inf", "-inf", "NaN"])
    def test_coverage_price_must_be_finite(self, sample_catalog, price):
        catalog, result = import_dataset(sample_catalog, 'coverages', csv(
            f"Vehicle ID,Coverage,Price\nvan,Full Wrap,{price}\n"
        ))

        assert (result.success, result.updated) == (0, 0)
        assert result.errors == ["Row 2: invalid price for coverage 'Full Wrap'"]
        assert catalog == sample_catalog

        selection = Selection(vehicle_id='van', coverage_id='full', print_material_id='mesh')
        assert compute_price(catalog, selection).total == 1050

    def test_material_value_must_be_finite(self, sample_catalog):
        catalog, result = import_dataset(sample_catalog, 'materials', csv(
            "Material Type,Name,Calculation Mode,Value\n"
            "Lamination,Matte Lamination,Percentage,inf\n"
        ))
        assert result.updated == 0
        assert len(result.errors) == 1 and "finite" in result.errors[0]
        assert catalog.get_lamination_material('matte').value == 10.0


class TestExtraOptionsImport:
    def test_update_by_name_and_append(self, sample_catalog):
        catalog, result = import_dataset(sample_catalog, 'extra_options', csv(
            "Manufacturer,Model,Extra Option,Price\n"
            "Ford,Transit,uv protection,125\n"
            "Ford,Transit,Chrome Delete,80\n"
        ))
        options = catalog.get_vehicle('van').extra_options

        assert (result.success, result.updated, result.errors) == (1, 1, [])
        assert [o.name for o in options] == ['UV Protection', 'Reflective', 'Chrome Delete']
        assert options[0].id == 'uv', "Existing options keep their id"
        assert options[0].price == 125
        assert options[2].price == 80

    def test_option_name_header(self, sample_catalog):
        catalog, result = import_dataset(sample_catalog, 'extra_options', csv(
            "Vehicle ID,Option Name,Price\nsedan,Tinted Roof,60\n"
        ))
        assert result.success == 1
        assert catalog.get_vehicle('sedan').extra_options[0].name == 'Tinted Roof'

    def test_exported_options_round_trip(self, sample_catalog):
        exported = export_dataset(sample_catalog, 'extra_options').to_csv(index=False)
        catalog, result = import_dataset(sample_catalog, 'extra_options', csv(exported))
        assert (result.success, result.updated) == (0, 2)
        assert catalog == sample_catalog
