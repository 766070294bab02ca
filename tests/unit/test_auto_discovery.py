"""Unit tests for modality auto-discovery"""

import pytest
from credit_offers.domain.exceptions import DuplicateModalityMappingError, DuplicateStandardModalityError
from credit_offers.domain.models import ModalityMapping, StandardModality
from credit_offers.services.auto_discovery import ModalityAutoDiscoveryService
from tests.fakes import InMemoryModalityMappingStore, InMemoryStandardModalityStore


class RacingStandardModalityStore(InMemoryStandardModalityStore):
    """Another writer inserts the same code just before our first save"""

    def save(self, modality: StandardModality) -> None:
        if self.save_calls == 0:
            self.winner = StandardModality(id="winner", code=modality.code, name="Winner")
            self.modalities.append(self.winner)
        super().save(modality)


class AlwaysConflictingStandardModalityStore(InMemoryStandardModalityStore):
    def save(self, modality: StandardModality) -> None:
        self.save_calls += 1
        raise DuplicateStandardModalityError(modality.code)


class RacingMappingStore(InMemoryModalityMappingStore):
    def save(self, mapping: ModalityMapping) -> None:
        if not self.mappings:
            self.winner = ModalityMapping(
                id="winner",
                institution_id=mapping.institution_id,
                external_code=mapping.external_code,
                standard_modality=mapping.standard_modality,
                modality_name=mapping.modality_name,
            )
            self.mappings.append(self.winner)
        super().save(mapping)


def test_matches_seeded_modality_by_keyword(discovery, standard_store, mapping_store):
    mapping = discovery.discover_or_create_mapping("1", "CP-001", "Crédito Pessoal")

    assert mapping.standard_modality.code == "PERSONAL_CREDIT"
    assert mapping.institution_id == "1"
    assert mapping.external_code == "CP-001"
    assert mapping.auto_discovered
    assert mapping.metadata["discovery_method"] == "keyword_matching"
    # only "pessoal" of four keywords appears
    assert mapping.confidence_score == pytest.approx(0.25)
    assert standard_store.save_calls == 0
    assert mapping_store.mappings == [mapping]


def test_discovery_is_idempotent(discovery, standard_store, mapping_store):
    first = discovery.discover_or_create_mapping("1", "CP-001", "Crédito Pessoal")
    second = discovery.discover_or_create_mapping("1", "CP-001", "Some other name")

    assert second is first
    assert len(mapping_store.mappings) == 1
    assert len(standard_store.modalities) == 7


def test_same_code_from_different_institutions_gets_separate_mappings(discovery, mapping_store):
    a = discovery.discover_or_create_mapping("1", "CP-001", "Crédito Pessoal")
    b = discovery.discover_or_create_mapping("2", "CP-001", "Crédito Pessoal")

    assert a.id != b.id
    assert a.standard_modality.code == b.standard_modality.code
    assert len(mapping_store.mappings) == 2


def test_first_matching_modality_wins(discovery):
    # "credito" is a CREDIT_CARD keyword but payroll comes first
    mapping = discovery.discover_or_create_mapping("1", "X1", "Cartão de Crédito Consignado")
    assert mapping.standard_modality.code == "PAYROLL_CREDIT"


def test_creates_new_standard_modality_for_unknown_name(empty_standard_store, mapping_store):
    discovery = ModalityAutoDiscoveryService(empty_standard_store, mapping_store)

    mapping = discovery.discover_or_create_mapping("1", "ANT-9", "Antecipação de Recebíveis")
    created = mapping.standard_modality

    assert created.code == "ANT_REC"
    assert created.name == "Antecipacao De Recebiveis"
    assert created.description == "Auto-discovered modality: Antecipação de Recebíveis"
    assert created.typical_interest_range == (0.01, 0.10)
    assert created.risk_level == "medium"
    assert created.keywords == ["antecipacao", "recebiveis"]
    assert mapping.confidence_score == 1.0
    assert empty_standard_store.modalities == [created]


def test_new_modality_uses_catalog_code_and_data_when_keyword_known(empty_standard_store, mapping_store):
    discovery = ModalityAutoDiscoveryService(empty_standard_store, mapping_store)

    created = discovery.find_or_create_standard_modality("Consignado INSS")

    assert created.code == "PAYROLL_CREDIT"
    assert created.typical_interest_range == (0.01, 0.03)
    assert created.risk_level == "low"


def test_new_modality_is_reused_for_later_names(empty_standard_store, mapping_store):
    discovery = ModalityAutoDiscoveryService(empty_standard_store, mapping_store)

    first = discovery.discover_or_create_mapping("1", "ANT-9", "Antecipação de Recebíveis")
    second = discovery.discover_or_create_mapping("2", "AR", "Antecipacao recebiveis cartao")

    assert second.standard_modality.id == first.standard_modality.id
    assert len(empty_standard_store.modalities) == 1


def test_existing_code_is_reused_instead_of_inserted(mapping_store):
    # no keywords, so only the code lookup can find it
    existing = StandardModality(id="existing", code="PERSONAL_CREDIT", name="Crédito Pessoal")
    store = InMemoryStandardModalityStore([existing])
    discovery = ModalityAutoDiscoveryService(store, mapping_store)

    assert discovery.find_or_create_standard_modality("Empréstimo pessoal") is existing
    assert store.save_calls == 0


def test_concurrent_standard_modality_insert_rereads_winner(mapping_store):
    store = RacingStandardModalityStore()
    discovery = ModalityAutoDiscoveryService(store, mapping_store)

    mapping = discovery.discover_or_create_mapping("1", "ANT-9", "Antecipação de Recebíveis")

    assert mapping.standard_modality is store.winner
    assert [m.code for m in store.modalities] == ["ANT_REC"]


def test_gives_up_after_max_retries(mapping_store):
    store = AlwaysConflictingStandardModalityStore()
    discovery = ModalityAutoDiscoveryService(store, mapping_store, max_retries=2)

    with pytest.raises(DuplicateStandardModalityError):
        discovery.discover_or_create_mapping("1", "ANT-9", "Antecipação de Recebíveis")
    assert store.save_calls == 2
    assert mapping_store.mappings == []


def test_concurrent_mapping_insert_returns_winner(standard_store):
    mappings = RacingMappingStore()
    discovery = ModalityAutoDiscoveryService(standard_store, mappings)

    mapping = discovery.discover_or_create_mapping("1", "CP-001", "Crédito Pessoal")

    assert mapping is mappings.winner
    assert len(mappings.mappings) == 1


def test_mapping_conflict_without_winner_propagates(standard_store):
    class BrokenMappingStore(InMemoryModalityMappingStore):
        def save(self, mapping):
            raise DuplicateModalityMappingError(mapping.external_code)

    discovery = ModalityAutoDiscoveryService(standard_store, BrokenMappingStore())

    with pytest.raises(DuplicateModalityMappingError):
        discovery.discover_or_create_mapping("1", "CP-001", "Crédito Pessoal")


@pytest.mark.parametrize(
    "name,code",
    [
        ("Crédito Pessoal", "PERSONAL_CREDIT"),
        ("FOLHA DE PAGAMENTO", "PAYROLL_CREDIT"),
        ("Financiamento de Veículo", "VEHICLE_FINANCING"),
        ("Crédito Imobiliário", "REAL_ESTATE_FINANCING"),
        ("Cartão Gold", "CREDIT_CARD"),
        ("Cheque Especial", "OVERDRAFT"),
        ("Rotativo", "REVOLVING_CREDIT"),
        ("Antecipação de Recebíveis", "ANT_REC"),
    ],
)
def test_suggest_standard_modality_code(discovery, name, code):
    assert discovery.suggest_standard_modality_code(name) == code


@pytest.mark.parametrize(
    "name,code",
    [
        ("Antecipação de Recebíveis", "ANT_REC"),
        ("capital de giro", "CAP_GIR"),
        ("de", "UNKNOWN_MODALITY"),
        ("", "UNKNOWN_MODALITY"),
        ("!!!", "UNKNOWN_MODALITY"),
    ],
)
def test_generate_code_from_name(name, code):
    assert ModalityAutoDiscoveryService.generate_code_from_name(name) == code


def test_confidence_score(discovery):
    no_keywords = StandardModality(id="1", code="X", name="x")
    two_keywords = StandardModality(id="2", code="Y", name="y", keywords=["capital", "giro"])

    assert discovery.calculate_confidence_score("anything", no_keywords) == 0.5
    assert discovery.calculate_confidence_score("Capital de Giro", two_keywords) == 1.0
    assert discovery.calculate_confidence_score("Capital próprio", two_keywords) == 0.5
    assert discovery.calculate_confidence_score("Outro", two_keywords) == 0.0
