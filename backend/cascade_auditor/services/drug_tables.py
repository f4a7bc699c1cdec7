# backend/cascade_auditor/services/drug_tables.py
from types import MappingProxyType
from typing import NamedTuple


class ArvIdentity(NamedTuple):
    canonical: str
    drug_class: str
    arv_class: str


_TDF = ArvIdentity("tenofovir DF (TDF)", "NRTI", "NRTI")
_TAF = ArvIdentity("tenofovir AF (TAF)", "NRTI", "NRTI")
_FTC = ArvIdentity("emtricitabine", "NRTI", "NRTI")
_3TC = ArvIdentity("lamivudine", "NRTI", "NRTI")
_ABC = ArvIdentity("abacavir", "NRTI", "NRTI")
_AZT = ArvIdentity("zidovudine (AZT)", "NRTI", "NRTI")

ARV_LOOKUP = MappingProxyType({
    # INSTI
    "dolutegravir": ArvIdentity("dolutegravir", "INSTI", "INSTI"),
    "bictegravir": ArvIdentity("bictegravir", "INSTI", "INSTI"),
    "raltegravir": ArvIdentity("raltegravir", "INSTI", "INSTI"),
    "elvitegravir": ArvIdentity("elvitegravir", "INSTI", "INSTI"),
    # NNRTI
    "efavirenz": ArvIdentity("efavirenz", "NNRTI (CYP3A4/2B6 inducer)", "NNRTI"),
    "nevirapine": ArvIdentity("nevirapine", "NNRTI (CYP3A4 inducer)", "NNRTI"),
    "rilpivirine": ArvIdentity("rilpivirine", "NNRTI", "NNRTI"),
    "etravirine": ArvIdentity("etravirine", "NNRTI", "NNRTI"),
    "doravirine": ArvIdentity("doravirine", "NNRTI", "NNRTI"),
    # PI
    "darunavir": ArvIdentity("darunavir", "PI", "PI"),
    "lopinavir": ArvIdentity("lopinavir", "PI", "PI"),
    "atazanavir": ArvIdentity("atazanavir", "PI", "PI"),
    "saquinavir": ArvIdentity("saquinavir", "PI (QT-prolonging)", "PI"),
    # boosters
    "ritonavir": ArvIdentity("ritonavir", "CYP3A4/P-gp inhibitor (booster)", "PI/booster"),
    "cobicistat": ArvIdentity("cobicistat", "CYP3A4 inhibitor (booster)", "Booster"),
    # NRTI
    "tenofovir disoproxil fumarate": _TDF,
    "tenofovir alafenamide": _TAF,
    "tdf": _TDF,
    "taf": _TAF,
    "emtricitabine": _FTC,
    "ftc": _FTC,
    "lamivudine": _3TC,
    "3tc": _3TC,
    "abacavir": _ABC,
    "abc": _ABC,
    "zidovudine": _AZT,
    "azt": _AZT,
    # fixed-dose combinations
    "symtuza": ArvIdentity("darunavir/cobicistat/emtricitabine/TAF", "PI+Booster+NRTI combo", "Combo"),
    "biktarvy": ArvIdentity("bictegravir/emtricitabine/TAF", "INSTI+NRTI combo", "Combo"),
    "triumeq": ArvIdentity("dolutegravir/abacavir/lamivudine", "INSTI+NRTI combo", "Combo"),
    "descovy": ArvIdentity("emtricitabine/TAF", "NRTI combo", "NRTI"),
    "truvada": ArvIdentity("emtricitabine/tenofovir DF", "NRTI combo", "NRTI"),
    "genvoya": ArvIdentity("elvitegravir/cobicistat/emtricitabine/TAF", "INSTI+Booster+NRTI", "Combo"),
    "odefsey": ArvIdentity("rilpivirine/emtricitabine/TAF", "NNRTI+NRTI combo", "Combo"),
})

_CYP3A4_STATIN = "Statin (CYP3A4 substrate — AVOID with PI/r)"

CLASS_LOOKUP = MappingProxyType({
    "ibuprofen": "NSAID", "naproxen": "NSAID", "diclofenac": "NSAID", "meloxicam": "NSAID",
    "ketorolac": "NSAID", "celecoxib": "NSAID", "indomethacin": "NSAID", "aspirin": "NSAID",
    "piroxicam": "NSAID",
    "amlodipine": "Calcium channel blocker", "nifedipine": "Calcium channel blocker",
    "felodipine": "Calcium channel blocker", "lercanidipine": "Calcium channel blocker",
    "enalapril": "ACE inhibitor", "lisinopril": "ACE inhibitor", "ramipril": "ACE inhibitor",
    "captopril": "ACE inhibitor", "perindopril": "ACE inhibitor", "fosinopril": "ACE inhibitor",
    "losartan": "ARB", "valsartan": "ARB", "candesartan": "ARB", "irbesartan": "ARB",
    "furosemide": "Loop diuretic", "torasemide": "Loop diuretic",
    "hydrochlorothiazide": "Thiazide diuretic", "chlorthalidone": "Thiazide diuretic",
    "indapamide": "Thiazide diuretic",
    "spironolactone": "Potassium-sparing diuretic",
    "atorvastatin": "Statin", "rosuvastatin": "Statin", "pravastatin": "Statin",
    "pitavastatin": "Statin",
    "simvastatin": _CYP3A4_STATIN, "lovastatin": _CYP3A4_STATIN,
    "omeprazole": "PPI", "pantoprazole": "PPI", "lansoprazole": "PPI", "esomeprazole": "PPI",
    "rabeprazole": "PPI",
    "metformin": "Biguanide antidiabetic", "sitagliptin": "DPP-4 inhibitor",
    "liraglutide": "GLP-1 agonist",
    "insulin glargine": "Insulin", "insulin aspart": "Insulin",
    "prednisone": "Corticosteroid", "prednisolone": "Corticosteroid",
    "dexamethasone": "Corticosteroid", "methylprednisolone": "Corticosteroid",
    "betamethasone": "Corticosteroid", "hydrocortisone": "Corticosteroid",
    "alendronate": "Bisphosphonate", "risedronate": "Bisphosphonate",
    "zoledronic acid": "Bisphosphonate", "ibandronate": "Bisphosphonate",
    "allopurinol": "Urate-lowering", "febuxostat": "Urate-lowering", "colchicine": "Antigout",
    "morphine": "Opioid", "oxycodone": "Opioid", "fentanyl": "Opioid", "tramadol": "Opioid",
    "codeine": "Opioid", "buprenorphine": "Opioid", "methadone": "Opioid",
    "lactulose": "Laxative", "macrogol": "Laxative", "bisacodyl": "Laxative", "senna": "Laxative",
    "sodium docusate": "Laxative", "naloxegol": "Opioid-antagonist laxative",
    "methylnaltrexone": "Opioid-antagonist laxative",
    "loperamide": "Antidiarrheal", "bismuth subsalicylate": "Antidiarrheal",
    "ondansetron": "Antiemetic (5-HT3)", "metoclopramide": "Antiemetic/prokinetic",
    "domperidone": "Antiemetic/prokinetic",
    "zolpidem": "Hypnotic", "zopiclone": "Hypnotic",
    "lorazepam": "Benzodiazepine", "alprazolam": "Benzodiazepine", "clonazepam": "Benzodiazepine",
    "diazepam": "Benzodiazepine", "midazolam": "Benzodiazepine (CYP3A4 substrate)",
    "triazolam": "Benzodiazepine (CYP3A4 substrate)",
    "fluoxetine": "SSRI", "sertraline": "SSRI", "paroxetine": "SSRI", "citalopram": "SSRI",
    "escitalopram": "SSRI", "fluvoxamine": "SSRI",
    "mirtazapine": "NaSSA antidepressant", "trazodone": "SARI antidepressant",
    "amitriptyline": "TCA", "nortriptyline": "TCA",
    "haloperidol": "Antipsychotic", "chlorpromazine": "Antipsychotic",
    "risperidone": "Antipsychotic", "olanzapine": "Antipsychotic", "quetiapine": "Antipsychotic",
    "aripiprazole": "Antipsychotic",
    "donepezil": "Cholinesterase inhibitor", "rivastigmine": "Cholinesterase inhibitor",
    "galantamine": "Cholinesterase inhibitor",
    "biperiden": "Anticholinergic", "trihexyphenidyl": "Anticholinergic",
    "benztropine": "Anticholinergic", "procyclidine": "Anticholinergic",
    "oxybutynin": "Anticholinergic (urinary)", "tolterodine": "Anticholinergic (urinary)",
    "solifenacin": "Anticholinergic (urinary)",
    "warfarin": "Anticoagulant (VKA)", "apixaban": "DOAC", "rivaroxaban": "DOAC",
    "dabigatran": "DOAC", "edoxaban": "DOAC",
    "sildenafil": "PDE5 inhibitor", "tadalafil": "PDE5 inhibitor", "vardenafil": "PDE5 inhibitor",
    "dextromethorphan": "Antitussive", "benzonatate": "Antitussive", "guaifenesin": "Expectorant",
    "calcium carbonate": "Calcium supplement", "cholecalciferol": "Vitamin D",
    "calcitriol": "Vitamin D (active)",
    "ferrous sulfate": "Iron supplement", "folic acid": "Vitamin B9",
    "epoetin alfa": "Erythropoietin", "darbepoetin": "Erythropoietin", "filgrastim": "G-CSF",
    "bisoprolol": "Beta-blocker", "atenolol": "Beta-blocker", "metoprolol": "Beta-blocker",
    "carvedilol": "Beta-blocker",
    "doxazosin": "Alpha-1 blocker",
    "fluticasone": "Inhaled corticosteroid (CYP3A4 substrate)",
    "budesonide": "Inhaled corticosteroid (CYP3A4 substrate)",
    "beclometasone": "Inhaled corticosteroid",
    "ursodeoxycholic acid": "Ursodeoxycholic acid",
    "sodium phosphate": "Phosphate supplement", "potassium phosphate": "Phosphate supplement",
})

# Names the KB examples rarely carry; appended to the extraction vocabulary.
ARV_SUPPLEMENT = (
    "cobicistat", "darunavir", "emtricitabine", "rilpivirine", "doravirine", "etravirine",
    "abacavir", "lamivudine", "atazanavir", "saquinavir", "elvitegravir",
    "symtuza", "biktarvy", "triumeq", "descovy", "truvada", "genvoya", "odefsey",
    "taf", "tdf", "ftc",
)
