"""
Entités du domaine métier.

Ce module définit l'instantané (snapshot) d'une demande LLM tel que fourni par l'interface: membres
du ménage, logement, sources de revenu, volet jeunes/étudiants et consentements. Le moteur de règles
ne fait que lire ces modèles; il ne les modifie jamais.

Les valeurs des champs énumérés reprennent les libellés transmis par le formulaire.
"""

from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

ApplicationType = Literal[
    "Inscription",
    "Contrôle",
    "Renouvellement",
    "Mise à jour",
    "Conditions étudiantes",
]
Role = Literal["preneur", "co-titulaire", "enfant", "autre", "enfant-a-naitre"]
Gender = Literal["Homme", "Femme", "Autre"]
PermitType = Literal["Permis C", "Permis B", "Permis F", "Sans permis", "Autre"]
CivilStatus = Literal[
    "Célibataire",
    "Marié·e",
    "Divorcé·e",
    "Séparé·e",
    "Part. dissous",
    "Veuf·ve",
    "Partenariat",
    "Union libre",
]
CustodySituation = Literal["droit_de_visite", "garde_partagee", "garde_exclusive"]
FinanceSource = Literal[
    "salarie",
    "independant",
    "apprentissage",
    "ai",
    "avs",
    "pilier2",
    "rente_pont",
    "chomage",
    "pcfamille",
    "pc",
    "ri",
    "evam",
    "pension",
    "formation",
    "bourse",
    "autres",
    "sans_revenu",
]

TENANT_ROLES: tuple[str, ...] = ("preneur", "co-titulaire")
SWISS_ISO = "CH"


class Upload(BaseModel):
    """Référence vers un document téléversé (le contenu n'est jamais inspecté)."""

    id: str
    name: str = ""
    type: str | None = None


class Address(BaseModel):
    """Adresse suisse (`suisse`) ou étrangère (`etranger`)."""

    kind: Literal["suisse", "etranger"] = "suisse"
    street: str | None = None
    number: str | None = None
    postal_code: str | None = None
    commune: str | None = None
    canton: str | None = None
    city: str | None = None
    country: str | None = None


class Nationality(BaseModel):
    """Nationalité: code ISO et libellé affiché."""

    iso: str | None = None
    name: str | None = None


class Permit(BaseModel):
    """Titre de séjour; la date d'expiration est exigée pour les permis B et F."""

    type: PermitType | None = None
    expires_on: str | None = None  # YYYY-MM-DD


class MarriageInfo(BaseModel):
    spouse_location: str | None = None
    certificate: list[Upload] = Field(default_factory=list)


class PregnancyInfo(BaseModel):
    # Certificat médical attestant au moins 13 semaines de grossesse
    certificate: list[Upload] = Field(default_factory=list)


class Guardian(BaseModel):
    """Curatelle / tutelle (adultes uniquement)."""

    last_name: str | None = None
    first_name: str | None = None
    phone: str | None = None
    email: str | None = None


class MemberDocuments(BaseModel):
    identity: list[Upload] = Field(default_factory=list)
    permit_scan: list[Upload] = Field(default_factory=list)
    civil_status_judgment: list[Upload] = Field(default_factory=list)
    civil_status_judgment_later: bool = False
    emancipation: list[Upload] = Field(default_factory=list)
    parental: list[Upload] = Field(default_factory=list)


class Member(BaseModel):
    """Personne (ou enfant à naître) composant le ménage."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    last_name: str | None = None
    first_name: str | None = None
    gender: Gender | None = None
    birth_date: str | None = None  # YYYY-MM-DD
    due_date: str | None = None  # date prévue d'accouchement
    address: Address = Field(default_factory=Address)
    phone: str | None = None
    email: str | None = None
    nationality: Nationality = Field(default_factory=Nationality)
    permit: Permit = Field(default_factory=Permit)
    civil_status: CivilStatus | None = None
    role: Role
    marriage: MarriageInfo = Field(default_factory=MarriageInfo)
    pregnancy: PregnancyInfo = Field(default_factory=PregnancyInfo)
    custody: CustodySituation | None = None
    guardian: Guardian | None = None
    documents: MemberDocuments = Field(default_factory=MemberDocuments)

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def is_swiss(self) -> bool:
        return (self.nationality.iso or "").upper() == SWISS_ISO

    @property
    def is_tenant(self) -> bool:
        return self.role in TENANT_ROLES

    @property
    def is_unborn(self) -> bool:
        return self.role == "enfant-a-naitre"


class Pieces(BaseModel):
    """Justificatifs d'une source de revenu, ou engagement de les joindre plus tard."""

    files: list[Upload] = Field(default_factory=list)
    later: bool = False


class Employer(BaseModel):
    name: str = ""
    documents: list[Upload] = Field(default_factory=list)


class FinanceEntry(BaseModel):
    """Couple (membre, source de revenu); aucun montant n'est modélisé."""

    member_id: str
    source: FinanceSource
    pieces: Pieces = Field(default_factory=Pieces)
    employers: list[Employer] = Field(default_factory=list)
    activity_start: str | None = None  # indépendant
    disability_degree: int | float | None = None  # rente AI, 1..100
    training_paid: bool | None = None  # formation
    comment: str | None = None


class PreFiltering(BaseModel):
    """Questions de pré-filtrage (Inscription uniquement)."""

    lives_3_years: bool | None = None
    works_3_years: bool | None = None

    @property
    def via_work(self) -> bool:
        """Éligibilité obtenue par le travail seul: exigences de justificatifs renforcées."""
        return self.lives_3_years is False and self.works_3_years is True


class Housing(BaseModel):
    rooms: float | str | None = None
    monthly_rent: float | None = None
    reason: str | None = None
    comment: str | None = None


class YouthTrack(BaseModel):
    """Volet « Conditions étudiantes » (jeunes de 18 à 25 ans en formation)."""

    training_location: str | None = None
    scholarship_or_income: bool = False
    general_public: bool = False
    compelling_reason: str | None = None
    compelling_reason_file: list[Upload] = Field(default_factory=list)


class Consents(BaseModel):
    selfie: list[Upload] = Field(default_factory=list)
    data_accuracy: bool = False
    rdu_access: bool = False
    other_adults: bool = False
    # Envoi facultatif d'une copie de la demande de consentement
    copy_requested: bool = False
    copy_email: str | None = None


class Application(BaseModel):
    """Instantané complet de la demande, source unique de vérité des validateurs."""

    application_type: ApplicationType = "Inscription"
    prefiltering: PreFiltering = Field(default_factory=PreFiltering)
    members: list[Member] = Field(default_factory=list)
    housing: Housing = Field(default_factory=Housing)
    finances: list[FinanceEntry] = Field(default_factory=list)
    youth: YouthTrack = Field(default_factory=YouthTrack)
    consents: Consents = Field(default_factory=Consents)
    test_mode: bool = False
    current_step: int = 1
    reference_number: str | None = None

    def primary_tenant(self) -> Member | None:
        return next((m for m in self.members if m.role == "preneur"), None)

    def member_by_id(self, member_id: str) -> Member | None:
        return next((m for m in self.members if m.id == member_id), None)
