# examples/quickstart.py
import numpy as np
import pandas as pd

import ire_dge
from ire_dge.samples import build_sample_table, design_matrix
from ire_dge.gene_sets import map_gene_sets

# --- make a tiny toy counts matrix (genes x samples) ---
genes = [f"gene{i+1}" for i in range(300)]
samples = [f"{g}_{i+1}" for g in ("wt", "mut") for i in range(4)]
rng = np.random.default_rng(1)
counts = rng.negative_binomial(n=10, p=0.3, size=(len(genes), len(samples))).astype(float)
# first 30 genes up in mutants
counts[:30, 4:] *= 3

counts = pd.DataFrame(counts, index=genes, columns=samples)
sample_table = build_sample_table(samples, genotype_pattern=r"^(wt|mut)_", reference="wt")
design = design_matrix(sample_table)

se = ire_dge.initialize_r(ire_dge.build_experiment(counts, sample_table))

# edgeR: filter, TMM, dispersion, NB GLM, likelihood-ratio test
import ire_dge.edger as edger

keep = edger.filter_by_cpm(se, min_cpm=1, group=sample_table["genotype"])
se = ire_dge.initialize_r(ire_dge.build_experiment(counts.loc[keep], sample_table))
se = edger.calc_norm_factors(se, method="TMM")
se = edger.estimate_disp(se, design)
model = edger.glm_fit(se, design)
results = edger.glm_lrt(model)
print(results.sort_values("p_value").head())

# limma::fry on two toy gene sets
import ire_dge.limma as limma

sets = map_gene_sets(
    {"shifted": genes[:30], "random": list(rng.choice(genes[30:], 25, replace=False))},
    id_to_symbol=None,
    universe=se.row_names,
)
print(limma.fry(se, sets, design))
