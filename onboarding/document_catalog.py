# onboarding/document_catalog.py

"""
Default catalog of KYC document types.

Applicability is expressed as the set of person-types each document applies
to, so adding a person-type never means adding another boolean column.
The catalog is upserted into the ``document_types`` collection at startup;
operators can edit the stored copy afterwards.
"""

from onboarding.schemas.enums import PersonType

PF = PersonType.individual
PF_AE = PersonType.individual_business
PM = PersonType.corporate

DOCUMENT_TYPES_CATALOG = [
    {
        "code": "INE",
        "name": "Identificación Oficial (INE)",
        "applies_to": {PF, PF_AE},
        "validity_days": None,
        "optional": False,
        "description": "Credencial para votar vigente",
    },
    {
        "code": "CURP",
        "name": "CURP",
        "applies_to": {PF, PF_AE},
        "validity_days": None,
        "optional": False,
        "description": "Clave Única de Registro de Población",
    },
    {
        "code": "CSF",
        "name": "Constancia de Situación Fiscal",
        "applies_to": {PF, PF_AE, PM},
        "validity_days": 30,
        "optional": False,
        "description": "Emitida por el SAT con antigüedad máxima de 30 días",
    },
    {
        "code": "EFIRMA",
        "name": "e.firma",
        "applies_to": {PF, PF_AE, PM},
        "validity_days": None,
        "optional": False,
        "description": "Certificado de firma electrónica avanzada",
    },
    {
        "code": "COMP_DOM",
        "name": "Comprobante de Domicilio",
        "applies_to": {PF, PF_AE, PM},
        "validity_days": 90,
        "optional": False,
        "description": "Recibo de servicios con antigüedad máxima de 3 meses",
    },
    {
        "code": "COMP_ING",
        "name": "Comprobante de Ingresos",
        "applies_to": {PF, PF_AE},
        "validity_days": 30,
        "optional": True,
        "description": "Recibos de nómina o estados de cuenta recientes",
    },
    {
        "code": "DECL_ANUAL",
        "name": "Declaración Anual (2 últimos ejercicios)",
        "applies_to": {PF_AE, PM},
        "validity_days": 365,
        "optional": False,
        "description": "Declaraciones anuales presentadas ante el SAT",
    },
    {
        "code": "ACTA",
        "name": "Acta Constitutiva",
        "applies_to": {PM},
        "validity_days": None,
        "optional": False,
        "description": "Acta constitutiva inscrita en el Registro Público de Comercio",
    },
    {
        "code": "PODERES",
        "name": "Poderes del Representante Legal",
        "applies_to": {PM},
        "validity_days": 365,
        "optional": False,
        "description": "Escritura de poderes vigente",
    },
    {
        "code": "EDOS_FIN",
        "name": "Estados Financieros (2 últimos ejercicios)",
        "applies_to": {PM},
        "validity_days": 365,
        "optional": False,
        "description": "Estados financieros dictaminados o firmados por contador",
    },
]
