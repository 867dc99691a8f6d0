from src.domain.value_objects.pagination import Page, PageRequest, SortSpec


def test_per_page_is_clamped_to_one_hundred():
    assert PageRequest.parse(1, 500).per_page == 100


def test_per_page_defaults_to_fifteen():
    request = PageRequest.parse(None, None)
    assert request.per_page == 15
    assert request.page == 1


def test_non_positive_values_are_raised_to_one():
    request = PageRequest.parse(-3, -5)
    assert request.page == 1
    assert request.per_page == 1


def test_offset_is_zero_based():
    assert PageRequest.parse(3, 10).offset == 20


def test_unknown_sort_field_falls_back_to_created_at_desc():
    spec = SortSpec.parse("password", "asc")
    assert spec.column == "created_at"
    assert spec.descending


def test_sort_direction_other_than_asc_means_desc():
    assert SortSpec.parse("email", "ASC").direction == "asc"
    assert SortSpec.parse("email", "sideways").direction == "desc"
    assert SortSpec.parse("email", None).direction == "desc"


def test_page_metadata():
    page = Page(items=["a", "b"], total=12, request=PageRequest(page=2, per_page=5))
    assert page.metadata() == {
        "current_page": 2,
        "last_page": 3,
        "per_page": 5,
        "total": 12,
        "from": 6,
        "to": 7,
    }


def test_empty_page_has_null_bounds():
    metadata = Page(items=[], total=0, request=PageRequest()).metadata()
    assert metadata["from"] is None
    assert metadata["to"] is None
    assert metadata["last_page"] == 1


def test_page_number_is_capped_so_the_offset_fits_in_64_bits():
    request = PageRequest.parse(10**20, 100)

    assert request.page == PageRequest.MAX_PAGE
    assert request.offset < 2**63
