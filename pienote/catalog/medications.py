from __future__ import annotations

"""
Common school medications and a lenient name check.

Design intent:
- Flag likely misspellings without blocking documentation.
- Match brand names typed alone against "Generic (Brand, Brand)" entries.
"""

import re

from pienote.validation.signals import SafetySignal

COMMON_MEDICATIONS: tuple[str, ...] = (
    # Pain & fever
    "Acetaminophen (Tylenol)",
    "Ibuprofen (Advil, Motrin)",
    "Naproxen (Aleve)",
    # ADHD
    "Methylphenidate (Ritalin, Concerta)",
    "Amphetamine/Dextroamphetamine (Adderall)",
    "Lisdexamfetamine (Vyvanse)",
    "Atomoxetine (Strattera)",
    "Guanfacine (Intuniv)",
    "Clonidine (Kapvay)",
    "Dexmethylphenidate (Focalin)",
    # Antibiotics
    "Amoxicillin",
    "Amoxicillin-Clavulanate (Augmentin)",
    "Azithromycin (Z-pack, Zithromax)",
    "Cephalexin (Keflex)",
    "Cefdinir (Omnicef)",
    # Respiratory / asthma
    "Albuterol inhaler (ProAir, Ventolin, ProAir RespiClick)",
    "Fluticasone inhaler (Flovent)",
    "Budesonide inhaler (Pulmicort)",
    "Levalbuterol (Xopenex)",
    "Albuterol nebulizer solution",
    "Montelukast (Singulair)",
    # Antihistamines / allergy
    "Diphenhydramine (Benadryl)",
    "Cetirizine (Zyrtec)",
    "Loratadine (Claritin)",
    "Fexofenadine (Allegra)",
    "Chlorpheniramine",
    # Emergency
    "Epinephrine auto-injector (EpiPen, Auvi-Q)",
    "Glucagon emergency kit",
    "Diazepam rectal gel (Diastat)",
    "Midazolam nasal spray (Nayzilam)",
    # Insulin
    "Insulin lispro (Humalog)",
    "Insulin aspart (Novolog)",
    "Insulin glargine (Lantus)",
    "Insulin detemir (Levemir)",
    "Insulin degludec (Tresiba)",
    "NPH insulin (Humulin N, Novolin N)",
    "Regular insulin (Humulin R, Novolin R)",
    # GI / nausea
    "Ondansetron (Zofran)",
    "Bismuth subsalicylate (Pepto-Bismol)",
    "Calcium carbonate (Tums)",
    "Omeprazole (Prilosec)",
    "Ranitidine (Zantac)",
    # Antiepileptic
    "Levetiracetam (Keppra)",
    "Valproic acid (Depakote)",
    "Lamotrigine (Lamictal)",
    "Carbamazepine (Tegretol)",
    # Other
    "Methylprednisolone dose pack (Medrol)",
    "Prednisone",
    "Olopatadine eye drops (Pataday, Patanol)",
    "Erythromycin eye ointment",
    "Hydrocortisone cream",
    "Bacitracin ointment",
    "Mupirocin ointment (Bactroban)",
)

_NAME_PART_SPLIT_RE = re.compile(r"[(),]")

UNKNOWN_MEDICATION_MESSAGE = (
    "This medication is not in our common medications list. Please verify the spelling."
)


def is_known_medication(name: str) -> bool:
    normalized = str(name or "").strip().lower()
    if not normalized:
        return True

    for known in COMMON_MEDICATIONS:
        known_normalized = known.lower()
        if known_normalized == normalized or normalized in known_normalized:
            return True
        for part in _NAME_PART_SPLIT_RE.split(known_normalized):
            trimmed = part.strip()
            if trimmed and trimmed in normalized:
                return True
    return False


def check_medication_name(name: str) -> SafetySignal | None:
    if is_known_medication(name):
        return None
    return SafetySignal(
        severity="info",
        field="med-name",
        code="medication_unrecognized",
        message=UNKNOWN_MEDICATION_MESSAGE,
        requires_acknowledgment=False,
    )
